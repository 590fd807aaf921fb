import pytest

from assassins.services.games.errors import InvalidAction, NotFound
from assassins.services.games.roster import Roster


def test_join_assigns_unique_ids_and_zero_score():
    roster = Roster()
    a = roster.join('Alice')
    b = roster.join('Alice')
    assert a != b
    assert roster.count() == 2
    assert roster.score_of(a) == 0
    assert [p.name for p in roster.all()] == ['Alice', 'Alice']


@pytest.mark.parametrize('name', ['', '   ', None])
def test_join_rejects_blank_names(name):
    roster = Roster()
    with pytest.raises(InvalidAction):
        roster.join(name)
    assert roster.count() == 0


def test_leave_removes_player_and_score():
    roster = Roster()
    a = roster.join('Alice')
    b = roster.join('Bob')
    roster.leave(a)
    assert a not in roster
    assert roster.scores() == {b: 0}
    # Absent ids are ignored
    assert roster.leave(a) is None
    assert roster.count() == 1


def test_all_keeps_join_order():
    roster = Roster()
    ids = [roster.join(n) for n in ('Cara', 'Alice', 'Bob')]
    assert [p.id for p in roster.all()] == ids
    assert roster.to_dict()[0] == {'id': ids[0], 'name': 'Cara'}


def test_apply_delta_and_reset():
    roster = Roster()
    a = roster.join('Alice')
    b = roster.join('Bob')
    roster.apply_delta(a, 3)
    roster.apply_delta(b, -2)
    assert roster.scores() == {a: 3, b: -2}
    roster.reset_scores()
    assert roster.scores() == {a: 0, b: 0}


def test_unknown_player_lookups_raise_not_found():
    roster = Roster()
    with pytest.raises(NotFound):
        roster.score_of('missing')
    with pytest.raises(NotFound):
        roster.apply_delta('missing', 1)
