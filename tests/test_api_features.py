import pytest

from api_features import MAX_SKIP, CatalogQuery, list_products
from errors import ValidationError


@pytest.fixture
def catalog(mongo, make_product):
    make_product("Trail Boot", price=120.0, category="outdoor")
    make_product("Ankle BOOT", price=80.0, category="outdoor")
    make_product("Running Shoe", price=55.0, category="sport")
    make_product("Canvas Sneaker", price=40.0, category="casual")
    make_product("Bootcut Sock", price=10.0, category="casual")
    make_product("Sandal", price=100.0, category="casual")
    return mongo["product"]


def names(page):
    return sorted(p["name"] for p in page.items)


def test_empty_params_returns_first_page_with_total(catalog):
    page = list_products(catalog, {})
    assert page.page == 1
    assert page.page_size == 4
    assert len(page.items) == 4
    assert page.filtered_count == 4
    assert page.total_count == 6


def test_second_page_holds_the_rest(catalog):
    page = list_products(catalog, {"page": "2"})
    assert page.page == 2
    assert page.filtered_count == 2


def test_page_past_the_end_is_empty(catalog):
    page = list_products(catalog, {"page": "9"})
    assert page.items == []
    assert page.total_count == 6


def test_huge_page_number_is_an_empty_page(catalog):
    huge = "1" + "0" * 20
    assert CatalogQuery().paginate({"page": huge}, 4).skip == MAX_SKIP
    page = list_products(catalog, {"page": huge})
    assert page.items == []
    assert page.total_count == 6


@pytest.mark.parametrize("raw", ["abc", "0", "-3", ""])
def test_unusable_page_falls_back_to_first(catalog, raw):
    assert list_products(catalog, {"page": raw}).page == 1


def test_keyword_is_case_insensitive_substring(catalog):
    page = list_products(catalog, {"keyword": "boot"}, page_size=10)
    assert names(page) == ["Ankle BOOT", "Bootcut Sock", "Trail Boot"]


def test_keyword_regex_characters_are_literal(catalog, make_product):
    make_product("Boot (2024)", price=1.0)
    page = list_products(catalog, {"keyword": "(2024)"}, page_size=10)
    assert names(page) == ["Boot (2024)"]


def test_price_range_is_inclusive(catalog):
    page = list_products(catalog, {"price[gte]": "50", "price[lte]": "100"}, page_size=10)
    assert names(page) == ["Ankle BOOT", "Running Shoe", "Sandal"]
    assert all(50 <= p["price"] <= 100 for p in page.items)


def test_single_price_bound(catalog):
    page = list_products(catalog, {"price[gte]": "100"}, page_size=10)
    assert names(page) == ["Sandal", "Trail Boot"]


def test_other_params_are_equality_filters(catalog):
    page = list_products(catalog, {"category": "casual", "price[lte]": "50"}, page_size=10)
    assert names(page) == ["Bootcut Sock", "Canvas Sneaker"]


def test_total_count_ignores_filters(catalog):
    page = list_products(catalog, {"keyword": "sandal"})
    assert page.filtered_count == 1
    assert page.total_count == 6


def test_malformed_price_bound_is_rejected(catalog):
    with pytest.raises(ValidationError):
        list_products(catalog, {"price[gte]": "cheap"})


@pytest.mark.parametrize("key", ["$where", "price[gt]", "stock[ne]"])
def test_operator_keys_are_rejected(key):
    with pytest.raises(ValidationError):
        CatalogQuery().filter({key: "1"})


def test_steps_do_not_mutate_the_previous_query():
    base = CatalogQuery()
    searched = base.search({"keyword": "boot"})
    filtered = searched.filter({"category": "sport"})
    paged = filtered.paginate({"page": "3"}, 4)

    assert base.match == {}
    assert set(searched.match) == {"name"}
    assert set(filtered.match) == {"name", "category"}
    assert (filtered.skip, filtered.limit) == (0, None)
    assert (paged.skip, paged.limit) == (8, 4)


def test_reserved_params_are_not_filters():
    query = CatalogQuery().filter({"keyword": "boot", "page": "2"})
    assert query.match == {}
