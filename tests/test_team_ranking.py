import pytest

from app.services.team_ranking import TeamRanker
from app.utils.geo import normalize_location

INCIDENT = normalize_location({"lat": 21.2, "lng": 72.78, "address": "X"})


def team(team_id, team_type, lat=21.2, lng=72.78, **extra):
    return {"id": team_id, "name": team_id, "type": team_type,
            "location": {"latitude": lat, "longitude": lng}, **extra}


@pytest.mark.parametrize("distance, eta", [(0, 15), (3.1, 16), (12, 60), (100, 60)])
def test_eta_is_clamped(distance, eta):
    assert TeamRanker.eta_minutes(distance) == eta


@pytest.mark.parametrize("score, count", [(1, 1), (3, 1), (4, 2), (6, 2), (7, 3), (10, 3)])
def test_team_count_for_score(score, count):
    assert TeamRanker.team_count_for_score(score) == count


def test_primary_type_outranks_nearer_secondary_type():
    teams = [
        team("medical", "Medical"),
        team("fire", "Fire Response", lat=21.21),
    ]
    ranked = TeamRanker.rank_all(INCIDENT, ["Fire Response", "Medical"], teams)
    assert [r.team.id for r in ranked] == ["fire", "medical"]
    assert ranked[0].type_relevance == 1
    assert ranked[1].relevance_score == pytest.approx(0.7 * 2)


def test_unrequired_type_gets_low_relevance():
    ranked = TeamRanker.rank_all(INCIDENT, ["Security"], [team("rescue", "Rescue"), team("sec", "Security")])
    assert ranked[-1].team.id == "rescue"
    assert ranked[-1].type_relevance == 10


def test_equal_scores_keep_candidate_order():
    teams = [team("a", "Medical"), team("b", "Medical"), team("c", "Medical")]
    ranked = TeamRanker.rank_all(INCIDENT, ["Medical"], teams)
    assert [r.team.id for r in ranked] == ["a", "b", "c"]


def test_rank_selects_top_n_by_score():
    teams = [team(str(i), "Medical", lat=21.2 + i * 0.01) for i in range(5)]
    assert len(TeamRanker.rank(INCIDENT, ["Medical"], teams, severity_score=2)) == 1
    assert len(TeamRanker.rank(INCIDENT, ["Medical"], teams, severity_score=5)) == 2
    selected = TeamRanker.rank(INCIDENT, ["Medical"], teams, severity_score=9)
    assert [r.team.id for r in selected] == ["0", "1", "2"]


def test_malformed_team_location_is_ranked_not_dropped():
    teams = [team("good", "Medical"), {"id": "broken", "type": "Medical", "location": "{not json"}]
    ranked = TeamRanker.rank_all(INCIDENT, ["Medical"], teams)
    assert {r.team.id for r in ranked} == {"good", "broken"}
    broken = next(r for r in ranked if r.team.id == "broken")
    assert not broken.location.is_valid
    assert broken.distance_km > 1000
    assert broken.eta_minutes == 60
