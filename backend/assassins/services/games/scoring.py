from typing import Dict, List, Optional

from assassins.models import ANONYMOUS, ASSASSINATED, SAVED, Player, ResultEvent
from .ledger import ChoiceLedger
from .roster import Roster

ASSASSINATION_POINTS = -1
SAVE_POINTS = 1
# Mutual conflict: the attacker gains what the betrayed saver loses
CONFLICT_POINTS = 2
MUTUAL_SAVE_POINTS = 2


class RoundOutcome:
    def __init__(self, results: Dict[str, List[ResultEvent]], deltas: Dict[str, int],
                 scores: Dict[str, int], winner: Optional[Player]):
        self.results = results
        self.deltas = deltas
        # Post-delta totals; the roster itself is left untouched
        self.scores = scores
        self.winner = winner

    def results_to_dict(self):
        return {pid: [e.to_dict() for e in events] for pid, events in self.results.items()}


def resolve_round(roster: Roster, ledger: ChoiceLedger, win_score: int = 5) -> RoundOutcome:
    """Turn one round of simultaneous choices into score deltas.

    Each actor's assassinate set is handled first:

    - T also tried to save A: T -2 (told who did it), A +2.
    - otherwise: T -1, attacker stays anonymous.

    Then the save set, skipping any pair with an assassination in either
    direction:

    - T also saves A: both +2, once per pair.
    - otherwise: T +1, saver stays anonymous.

    Choices by or against players no longer in the roster are ignored.
    Actors and targets are visited in roster order so the emitted events
    and the reported winner are deterministic.
    """
    participants = roster.ids()
    deltas: Dict[str, int] = {pid: 0 for pid in participants}
    results: Dict[str, List[ResultEvent]] = {}

    def record(subject_id: str, source: str, kind: str, points: int) -> None:
        deltas[subject_id] += points
        results.setdefault(subject_id, []).append(ResultEvent(subject_id, source, kind, points))

    def in_roster_order(targets):
        return [pid for pid in participants if pid in targets]

    mutual_saves = set()
    for actor in participants:
        choices = ledger.choices_of(actor)

        for target in in_roster_order(choices.assassinate):
            if actor in ledger.choices_of(target).save:
                record(target, actor, ASSASSINATED, -CONFLICT_POINTS)
                record(actor, target, SAVED, CONFLICT_POINTS)
            else:
                record(target, ANONYMOUS, ASSASSINATED, ASSASSINATION_POINTS)

        for target in in_roster_order(choices.save):
            target_choices = ledger.choices_of(target)
            if target in choices.assassinate or actor in target_choices.assassinate:
                continue
            if actor in target_choices.save:
                pair = frozenset((actor, target))
                if pair in mutual_saves:
                    continue
                mutual_saves.add(pair)
                record(actor, target, SAVED, MUTUAL_SAVE_POINTS)
                record(target, actor, SAVED, MUTUAL_SAVE_POINTS)
            else:
                record(target, ANONYMOUS, SAVED, SAVE_POINTS)

    current = roster.scores()
    scores = {pid: current[pid] + deltas[pid] for pid in participants}
    winner = None
    for pid in participants:
        if scores[pid] >= win_score:
            winner = roster.get(pid)
            break

    return RoundOutcome(results=results, deltas=deltas, scores=scores, winner=winner)
