import uuid

ASSASSINATE = 'assassinate'
SAVE = 'save'
ACTIONS = (ASSASSINATE, SAVE)

# Result kinds as seen by the affected player
ASSASSINATED = 'assassinated'
SAVED = 'saved'

ANONYMOUS = 'anonymous'


def generate_player_id() -> str:
    """Generate an opaque, never-reused player token."""
    return uuid.uuid4().hex


class Player:
    def __init__(self, name: str, id: str = None):
        self.id = id or generate_player_id()
        self.name = name

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
        }

    def __repr__(self):
        return f"<Player {self.id} {self.name!r}>"


class ResultEvent:
    """One scoring consequence of a round, addressed to ``subject_id``.

    ``source`` is the id of the other player involved, or ``'anonymous'``
    when the acting player stays hidden from the subject.
    """

    def __init__(self, subject_id: str, source: str, kind: str, points: int):
        self.subject_id = subject_id
        self.source = source
        self.kind = kind
        self.points = points

    def to_dict(self):
        return {
            'subject_id': self.subject_id,
            'from': self.source,
            'kind': self.kind,
            'points': self.points,
        }

    def __eq__(self, other):
        if not isinstance(other, ResultEvent):
            return NotImplemented
        return (
            self.subject_id == other.subject_id
            and self.source == other.source
            and self.kind == other.kind
            and self.points == other.points
        )

    def __repr__(self):
        return f"<ResultEvent {self.subject_id} {self.kind} {self.points:+d} from={self.source}>"
