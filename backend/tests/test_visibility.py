"""
Tests for per-viewer redaction.
"""
import pytest

from conftest import one_with, players_with
from engine.accusations import accusation_resolver
from engine.visibility import build_view, lobby_summary, project
from models.game import Phase, Role


@pytest.fixture
def game(make_game):
    return make_game(7)


def _roles_seen(view_session, viewer):
    return {p.id: p.role for p in view_session.participants if p.id != viewer.id}


def test_own_record_is_complete(game):
    for viewer in game.participants:
        seen = project(game, viewer.id).participant(viewer.id)
        assert seen == viewer


def test_investigator_sees_no_other_roles(game):
    viewer = players_with(game, Role.INVESTIGATOR)[0]
    seen = project(game, viewer.id)
    assert all(role is None for role in _roles_seen(seen, viewer).values())
    assert seen.solution is None
    assert seen.tile_pool == ()


def test_murderer_and_accomplice_see_each_other(game):
    murderer = one_with(game, Role.MURDERER)
    accomplice = one_with(game, Role.ACCOMPLICE)

    as_murderer = _roles_seen(project(game, murderer.id), murderer)
    assert as_murderer[accomplice.id] == Role.ACCOMPLICE
    assert [r for r in as_murderer.values() if r is not None] == [Role.ACCOMPLICE]

    as_accomplice = _roles_seen(project(game, accomplice.id), accomplice)
    assert as_accomplice[murderer.id] == Role.MURDERER
    assert [r for r in as_accomplice.values() if r is not None] == [Role.MURDERER]


def test_witness_sees_conspirators_one_way(game):
    witness = one_with(game, Role.WITNESS)
    murderer = one_with(game, Role.MURDERER)
    accomplice = one_with(game, Role.ACCOMPLICE)

    as_witness = _roles_seen(project(game, witness.id), witness)
    assert as_witness[murderer.id] == Role.MURDERER
    assert as_witness[accomplice.id] == Role.ACCOMPLICE
    assert sum(r is not None for r in as_witness.values()) == 2

    assert _roles_seen(project(game, murderer.id), murderer)[witness.id] is None
    assert _roles_seen(project(game, accomplice.id), accomplice)[witness.id] is None


def test_solution_roles_see_solution(game):
    for role in (Role.FORENSIC_SCIENTIST, Role.MURDERER, Role.ACCOMPLICE):
        viewer = one_with(game, role)
        assert project(game, viewer.id).solution == game.solution
    assert project(game, one_with(game, Role.WITNESS).id).solution is None


def test_pool_only_for_scientist(game):
    scientist = one_with(game, Role.FORENSIC_SCIENTIST)
    murderer = one_with(game, Role.MURDERER)
    assert project(game, scientist.id).tile_pool == game.tile_pool
    assert project(game, murderer.id).tile_pool == ()


def test_active_tiles_are_public(game):
    viewer = players_with(game, Role.INVESTIGATOR)[0]
    seen = project(game, viewer.id)
    assert seen.scene_tiles == game.scene_tiles
    assert seen.cause_of_death_tile == game.cause_of_death_tile


def test_other_device_tokens_hidden(game):
    viewer = game.participants[0]
    seen = project(game, viewer.id)
    assert seen.participant(viewer.id).device_id == viewer.device_id
    assert all(p.device_id is None for p in seen.participants if p.id != viewer.id)


def test_hands_are_face_up(game):
    viewer = players_with(game, Role.INVESTIGATOR)[0]
    murderer = one_with(game, Role.MURDERER)
    seen = project(game, viewer.id).participant(murderer.id)
    assert seen.evidence_cards == murderer.evidence_cards
    assert seen.method_cards == murderer.method_cards


def test_anonymous_viewer_sees_nothing_secret(game):
    seen = project(game, None)
    assert all(p.role is None and p.device_id is None for p in seen.participants)
    assert seen.solution is None
    assert seen.tile_pool == ()


def test_finished_game_reveals_everything(game):
    murderer = one_with(game, Role.MURDERER)
    investigator = players_with(game, Role.INVESTIGATOR)[0]
    finished = accusation_resolver.accuse(
        game, investigator.id, murderer.id, game.solution.evidence_id, game.solution.method_id
    ).session
    assert finished.phase == Phase.FINISHED

    for viewer in finished.participants:
        seen = project(finished, viewer.id)
        assert [p.role for p in seen.participants] == [p.role for p in finished.participants]
        assert seen.solution == finished.solution


def test_projection_does_not_touch_source(game):
    viewer = players_with(game, Role.INVESTIGATOR)[0]
    project(game, viewer.id)
    assert all(p.role is not None for p in game.participants)
    assert game.solution is not None


def test_build_view_shape(game):
    viewer = one_with(game, Role.WITNESS)
    view = build_view(game, viewer.id)
    assert "version" not in view
    assert view["viewer_id"] == viewer.id
    assert view["role_info"]["name"] == "Witness"
    assert view["lobby_summary"] is None
    assert view["phase"] == "discussion"
    assert view["solution"] is None


def test_build_view_in_lobby(make_lobby):
    session = make_lobby(6)
    view = build_view(session, session.host.id)
    assert view["role_info"] is None
    assert view["lobby_summary"]["role_counts"] == {
        "forensic_scientist": 1, "murderer": 1, "accomplice": 1, "investigator": 3,
    }
    assert view["lobby_summary"]["player_count_warning"] == ""


def test_lobby_summary_warns_outside_range():
    summary = lobby_summary(3)
    assert summary["role_counts"] == {}
    assert "4" in summary["player_count_warning"] and "12" in summary["player_count_warning"]


def test_lobby_summary_text():
    assert lobby_summary(4)["summary"] == (
        "In this game: 1 forensic scientist, 1 murderer, 2 investigators."
    )
