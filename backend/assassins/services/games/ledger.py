from typing import Dict, List, Set

from assassins.models import ACTIONS, ASSASSINATE, SAVE
from .errors import InvalidAction


class PlayerChoices:
    """One actor's outbound targets for the current round."""

    def __init__(self):
        self.assassinate: Set[str] = set()
        self.save: Set[str] = set()

    def targets(self, action: str) -> Set[str]:
        return self.assassinate if action == ASSASSINATE else self.save

    def to_dict(self):
        return {
            ASSASSINATE: sorted(self.assassinate),
            SAVE: sorted(self.save),
        }


class ChoiceLedger:
    """Per-round record of who each player wants to assassinate or save.

    A target sits in at most one of an actor's two sets: choosing one
    action on a target retracts the other.
    """

    def __init__(self):
        self._choices: Dict[str, PlayerChoices] = {}

    def clear(self) -> None:
        self._choices.clear()

    def set_choice(self, actor_id: str, target_id: str, action: str) -> None:
        if action not in ACTIONS:
            raise InvalidAction(f'Unknown action {action!r}')
        choices = self._choices.setdefault(actor_id, PlayerChoices())
        other = SAVE if action == ASSASSINATE else ASSASSINATE
        choices.targets(action).add(target_id)
        choices.targets(other).discard(target_id)

    def choices_of(self, actor_id: str) -> PlayerChoices:
        return self._choices.get(actor_id) or PlayerChoices()

    def actors(self) -> List[str]:
        return list(self._choices)

    def __len__(self) -> int:
        return len(self._choices)
