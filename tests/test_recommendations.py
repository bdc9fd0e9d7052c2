from __future__ import annotations

from app.services.recommendations import (
    RECOMMENDATION_LIMIT,
    popularity_score,
    preference_profile,
    recommend,
)


def _names(recipes):
    return [r.name for r in recipes]


def _ids(catalog, *names):
    by_name = {r.name: r.id for r in catalog}
    return [by_name[n] for n in names]


def test_cold_start_prefers_many_raters(make_recipe):
    many = make_recipe(name="Many", average_rating=4.5, rating_count=10)
    one = make_recipe(name="One", average_rating=5.0, rating_count=1)
    assert _names(recommend([one, many], set(), {})) == ["Many", "One"]


def test_cold_start_popularity_order_and_limit(catalog):
    out = recommend(catalog, set(), {})
    assert len(out) == RECOMMENDATION_LIMIT
    assert _names(out) == [
        "Pasta Pomodoro",        # 4.0 * 20
        "Chicken Tikka",         # 4.5 * 10
        "Chicken Fried Rice",    # 4.2 * 8
        "Chicken Trio Platter",  # 4.8 * 3
        "Tofu Stir Fry",         # 3.5 * 4
        "Eggplant Parmesan",     # 5.0 * 1
    ]
    assert [popularity_score(r) for r in out] == sorted((popularity_score(r) for r in out), reverse=True)


def test_cold_start_ties_keep_input_order(make_recipe):
    a = make_recipe(name="A", average_rating=4.0, rating_count=2)
    b = make_recipe(name="B", average_rating=2.0, rating_count=4)
    c = make_recipe(name="C", average_rating=0.0, rating_count=0)
    assert _names(recommend([c, a, b], [], {})) == ["A", "B", "C"]


def test_personalized_scoring(catalog):
    pasta_id, tikka_id = _ids(catalog, "Pasta Pomodoro", "Chicken Tikka")
    out = recommend(catalog, {pasta_id}, {tikka_id: 5})
    assert _names(out) == [
        "Chicken Tikka",         # 45 + Indian 20 + Medium 10
        "Eggplant Parmesan",     # 50 + Italian 20
        "Chicken Fried Rice",    # 42 + Medium 10
        "Chicken Trio Platter",  # 48
        "Tofu Stir Fry",         # 35 + Easy 10
        "Basil Omelette",        # 0 + Easy 10
    ]


def test_favorites_are_never_recommended(catalog):
    fav_ids = set(_ids(catalog, "Pasta Pomodoro", "Eggplant Parmesan", "Basil Omelette"))
    out = recommend(catalog, fav_ids, {})
    assert not fav_ids & {r.id for r in out}
    assert len(out) == min(RECOMMENDATION_LIMIT, len(catalog) - len(fav_ids))


def test_output_length_is_bounded_by_eligible(catalog):
    fav_ids = set(_ids(catalog, *[r.name for r in catalog[:5]]))
    assert len(recommend(catalog, fav_ids, {})) == 2
    assert recommend(catalog, {r.id for r in catalog}, {}) == []


def test_low_ratings_are_not_a_preference_but_end_cold_start(catalog):
    tofu_id = _ids(catalog, "Tofu Stir Fry")[0]
    cuisines, difficulties = preference_profile(catalog, set(), {tofu_id: 2})
    assert not cuisines and not difficulties
    out = recommend(catalog, set(), {tofu_id: 2})
    # personalized branch with an empty profile ranks by average rating alone
    assert _names(out)[:2] == ["Eggplant Parmesan", "Chicken Trio Platter"]


def test_favorited_and_highly_rated_counts_twice(catalog):
    pasta_id = _ids(catalog, "Pasta Pomodoro")[0]
    cuisines, difficulties = preference_profile(catalog, {pasta_id}, {pasta_id: 5})
    assert cuisines["Italian"] == 2
    assert difficulties["Easy"] == 2


def test_rated_but_not_favorited_stays_eligible(catalog):
    tikka_id = _ids(catalog, "Chicken Tikka")[0]
    assert tikka_id in {r.id for r in recommend(catalog, set(), {tikka_id: 5})}


def test_recommend_does_not_mutate_input(catalog):
    snapshot = list(catalog)
    recommend(catalog, set(), {})
    assert catalog == snapshot
