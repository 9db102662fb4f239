"""
DevCamper API — Query Resolver Tests
=====================================

What:  The filter / select / sort / paginate pipeline shared by every list
       endpoint, against a real (in-memory SQLite) database.

Test Strategy:
    ✅ Query-string parsing into Equals / Compare / InSet
    ✅ Page window defaults and next/prev links
    ✅ Projection (id always kept, hidden columns never)
    ✅ Default newest-first order, explicit sort, tie-break
    ✅ Unknown fields match nothing; bad values are 400s
    ✅ Whole-collection vs filtered count
"""

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

from devcamper.exceptions import ValidationError
from devcamper.models import Bootcamp, Course, User
from devcamper.services.query_resolver import (
    Compare,
    Equals,
    InSet,
    ResolveOptions,
    parse_filters,
    parse_window,
    query_resolver,
)

CAREER_CYCLE = (
    ["Web Development", "Business"],
    ["Data Science"],
    ["UI/UX", "Mobile Development"],
)


@pytest_asyncio.fixture
async def bootcamps(db_session):
    """25 bootcamps: Camp 01 is the oldest, average_cost = n * 1000, even n has housing."""
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    rows = []
    for n in range(1, 26):
        rows.append(
            Bootcamp(
                name=f"Camp {n:02d}",
                slug=f"camp-{n:02d}",
                description=f"Bootcamp number {n}",
                careers=CAREER_CYCLE[n % 3],
                average_cost=float(n * 1000),
                housing=n % 2 == 0,
                created_at=start + timedelta(days=n),
            )
        )
    db_session.add_all(rows)
    await db_session.flush()
    return rows


# ── Parsing ───────────────────────────────────────────────────────────────

class TestParseFilters:
    def test_plain_key_is_equality(self):
        assert parse_filters([("housing", "true")]) == [Equals(field="housing", value="true")]

    def test_comparison_operators(self):
        filters = parse_filters([("average_cost[lte]", "10000"), ("weeks[gt]", "4")])
        assert filters == [
            Compare(field="average_cost", op="lte", value="10000"),
            Compare(field="weeks", op="gt", value="4"),
        ]

    def test_in_splits_commas_and_collects_repeats(self):
        filters = parse_filters([("careers[in]", "Business,UI/UX"), ("careers[in]", "Data Science")])
        assert filters == [InSet(field="careers", values=("Business", "UI/UX", "Data Science"))]

    def test_reserved_keys_are_not_filters(self):
        pairs = [("select", "name"), ("sort", "-name"), ("page", "2"), ("limit", "5")]
        assert parse_filters(pairs) == []

    def test_repeated_plain_key_keeps_last_value(self):
        assert parse_filters([("housing", "false"), ("housing", "true")]) == [
            Equals(field="housing", value="true")
        ]

    def test_unknown_operator_is_literal_key(self):
        # No substring matching: "price[foo]" is not an operator
        assert parse_filters([("price[foo]", "1")]) == [Equals(field="price[foo]", value="1")]

    def test_operator_word_inside_value_is_untouched(self):
        filters = parse_filters([("name", "gte lt in")])
        assert filters == [Equals(field="name", value="gte lt in")]


class TestParseWindow:
    def test_defaults(self):
        assert parse_window(None, None) == (1, 25)

    def test_explicit(self):
        assert parse_window("3", "10") == (3, 10)

    def test_invalid_values_fall_back(self):
        assert parse_window("0", "-5") == (1, 25)
        assert parse_window("abc", "ten") == (1, 25)


# ── Resolution ────────────────────────────────────────────────────────────

class TestResolve:
    @pytest.mark.asyncio
    async def test_equality_filter(self, db_session, bootcamps):
        result = await query_resolver.resolve(db_session, Bootcamp, {"housing": "true"})
        assert result.count == 12
        assert all(b["housing"] is True for b in result.data)

    @pytest.mark.asyncio
    async def test_default_order_is_newest_first(self, db_session, bootcamps):
        result = await query_resolver.resolve(db_session, Bootcamp, {})
        assert result.count == 25
        assert result.data[0]["name"] == "Camp 25"
        assert result.data[-1]["name"] == "Camp 01"

    @pytest.mark.asyncio
    async def test_sort_ascending_and_descending(self, db_session, bootcamps):
        ascending = await query_resolver.resolve(db_session, Bootcamp, {"sort": "name", "limit": "3"})
        assert [b["name"] for b in ascending.data] == ["Camp 01", "Camp 02", "Camp 03"]

        descending = await query_resolver.resolve(db_session, Bootcamp, {"sort": "-average_cost", "limit": "2"})
        assert [b["average_cost"] for b in descending.data] == [25000.0, 24000.0]

    @pytest.mark.asyncio
    async def test_unknown_sort_field_falls_back_to_newest_first(self, db_session, bootcamps):
        result = await query_resolver.resolve(db_session, Bootcamp, {"sort": "nonexistent", "limit": "1"})
        assert result.data[0]["name"] == "Camp 25"

    @pytest.mark.asyncio
    async def test_list_columns_are_not_sortable(self, db_session, bootcamps):
        only_careers = await query_resolver.resolve(db_session, Bootcamp, {"sort": "careers", "limit": "1"})
        assert only_careers.data[0]["name"] == "Camp 25"

        careers_then_name = await query_resolver.resolve(db_session, Bootcamp, {"sort": "-careers,name", "limit": "3"})
        assert [b["name"] for b in careers_then_name.data] == ["Camp 01", "Camp 02", "Camp 03"]

    @pytest.mark.asyncio
    async def test_comparison_filters(self, db_session, bootcamps):
        cheap = await query_resolver.resolve(db_session, Bootcamp, {"average_cost[lte]": "5000"})
        assert cheap.count == 5
        assert all(b["average_cost"] <= 5000 for b in cheap.data)

        expensive = await query_resolver.resolve(db_session, Bootcamp, {"average_cost[gt]": "20000"})
        assert sorted(b["average_cost"] for b in expensive.data) == [21000.0, 22000.0, 23000.0, 24000.0, 25000.0]

    @pytest.mark.asyncio
    async def test_combined_filters_are_anded(self, db_session, bootcamps):
        result = await query_resolver.resolve(
            db_session, Bootcamp, {"average_cost[gte]": "10000", "average_cost[lt]": "15000", "housing": "true"}
        )
        assert sorted(b["name"] for b in result.data) == ["Camp 10", "Camp 12", "Camp 14"]

    @pytest.mark.asyncio
    async def test_in_filter_on_scalar_column(self, db_session, bootcamps):
        result = await query_resolver.resolve(db_session, Bootcamp, {"name[in]": "Camp 01,Camp 07"})
        assert sorted(b["name"] for b in result.data) == ["Camp 01", "Camp 07"]

    @pytest.mark.asyncio
    async def test_list_column_equality_is_membership(self, db_session, bootcamps):
        result = await query_resolver.resolve(db_session, Bootcamp, {"careers": "Business", "limit": "100"})
        # n % 3 == 0 → ["Web Development", "Business"]
        assert result.count == 8
        assert all("Business" in b["careers"] for b in result.data)

    @pytest.mark.asyncio
    async def test_list_column_in(self, db_session, bootcamps):
        result = await query_resolver.resolve(
            db_session, Bootcamp, {"careers[in]": "Data Science,UI/UX", "limit": "100"}
        )
        assert result.count == 17
        assert all(set(b["careers"]) & {"Data Science", "UI/UX"} for b in result.data)

    @pytest.mark.asyncio
    async def test_select_keeps_only_requested_fields_and_id(self, db_session, bootcamps):
        result = await query_resolver.resolve(db_session, Bootcamp, {"select": "name,email"})
        assert result.data
        for record in result.data:
            assert set(record) == {"id", "name", "email"}

    @pytest.mark.asyncio
    async def test_select_drops_unknown_fields(self, db_session, bootcamps):
        result = await query_resolver.resolve(db_session, Bootcamp, {"select": "bogus", "limit": "1"})
        assert set(result.data[0]) == {"id"}

    @pytest.mark.asyncio
    async def test_pagination_links_middle_page(self, db_session, bootcamps):
        result = await query_resolver.resolve(db_session, Bootcamp, {"page": "2", "limit": "10"})
        assert result.count == 10
        assert result.pagination["next"].model_dump() == {"page": 3, "limit": 10}
        assert result.pagination["prev"].model_dump() == {"page": 1, "limit": 10}

    @pytest.mark.asyncio
    async def test_pagination_links_last_page(self, db_session, bootcamps):
        result = await query_resolver.resolve(db_session, Bootcamp, {"page": "3", "limit": "10"})
        assert result.count == 5
        assert "next" not in result.pagination
        assert result.pagination["prev"].page == 2

    @pytest.mark.asyncio
    async def test_single_page_has_no_links(self, db_session, bootcamps):
        result = await query_resolver.resolve(db_session, Bootcamp, {"limit": "100"})
        assert result.count == 25
        assert result.pagination == {}

    @pytest.mark.asyncio
    async def test_pages_do_not_overlap(self, db_session, bootcamps):
        first = await query_resolver.resolve(db_session, Bootcamp, {"sort": "housing", "limit": "13"})
        second = await query_resolver.resolve(db_session, Bootcamp, {"sort": "housing", "limit": "13", "page": "2"})
        ids = [b["id"] for b in first.data] + [b["id"] for b in second.data]
        assert len(ids) == len(set(ids)) == 25

    @pytest.mark.asyncio
    async def test_same_query_twice_gives_same_result(self, db_session, bootcamps):
        params = {"housing": "true", "sort": "-average_cost", "select": "name,average_cost", "limit": "4"}
        first = await query_resolver.resolve(db_session, Bootcamp, params)
        second = await query_resolver.resolve(db_session, Bootcamp, params)
        assert first.model_dump() == second.model_dump()

    @pytest.mark.asyncio
    async def test_unknown_field_matches_nothing(self, db_session, bootcamps):
        result = await query_resolver.resolve(db_session, Bootcamp, {"foo": "bar"})
        assert result.count == 0
        assert result.data == []

    @pytest.mark.asyncio
    async def test_unknown_operator_matches_nothing(self, db_session, bootcamps):
        result = await query_resolver.resolve(db_session, Bootcamp, {"average_cost[foo]": "1"})
        assert result.count == 0

    @pytest.mark.asyncio
    async def test_uncoercible_value_is_validation_error(self, db_session, bootcamps):
        with pytest.raises(ValidationError) as exc_info:
            await query_resolver.resolve(db_session, Bootcamp, {"average_cost[gte]": "cheap"})
        assert exc_info.value.status_code == 400
        assert exc_info.value.context["field"] == "average_cost"

    @pytest.mark.asyncio
    async def test_comparison_on_list_column_is_rejected(self, db_session, bootcamps):
        with pytest.raises(ValidationError):
            await query_resolver.resolve(db_session, Bootcamp, {"careers[gt]": "Business"})

    @pytest.mark.asyncio
    async def test_total_counts_whole_collection_by_default(self, db_session, bootcamps):
        # 12 housing bootcamps, but the total used for links is all 25
        result = await query_resolver.resolve(db_session, Bootcamp, {"housing": "true", "limit": "5", "page": "3"})
        assert result.count == 2
        assert "next" in result.pagination

    @pytest.mark.asyncio
    async def test_filtered_count_option(self, db_session, bootcamps):
        result = await query_resolver.resolve(
            db_session,
            Bootcamp,
            {"housing": "true", "limit": "5", "page": "3"},
            ResolveOptions(count_filtered=True),
        )
        assert result.count == 2
        assert "next" not in result.pagination

    @pytest.mark.asyncio
    async def test_populate_embeds_related_records(self, db_session, bootcamps):
        camp = bootcamps[0]
        db_session.add(
            Course(
                title="Intro",
                description="Basics",
                weeks=4,
                tuition=1000,
                minimum_skill="beginner",
                bootcamp_id=camp.id,
            )
        )
        await db_session.flush()

        result = await query_resolver.resolve(
            db_session,
            Bootcamp,
            {"name": "Camp 01", "select": "name"},
            ResolveOptions(populate="courses", populate_fields=("title",)),
        )
        record = result.data[0]
        assert set(record) == {"id", "name", "courses"}
        assert record["courses"] == [{"id": record["courses"][0]["id"], "title": "Intro"}]

    @pytest.mark.asyncio
    async def test_populate_many_to_one_with_projection(self, db_session, bootcamps):
        db_session.add(
            Course(
                title="Intro",
                description="Basics",
                weeks=4,
                tuition=1000,
                minimum_skill="beginner",
                bootcamp_id=bootcamps[4].id,
            )
        )
        await db_session.flush()

        result = await query_resolver.resolve(
            db_session,
            Course,
            {"select": "title"},
            ResolveOptions(populate="bootcamp", populate_fields=("name", "description")),
        )
        record = result.data[0]
        assert record["title"] == "Intro"
        assert record["bootcamp"]["name"] == "Camp 05"
        assert set(record["bootcamp"]) == {"id", "name", "description"}


class TestHiddenColumns:
    @pytest.mark.asyncio
    async def test_password_hash_is_never_selected_or_filterable(self, db_session):
        db_session.add(User(name="Jane", email="jane@example.com", password_hash="secret-hash"))
        await db_session.flush()

        everything = await query_resolver.resolve(db_session, User, {})
        assert "password_hash" not in everything.data[0]
        assert everything.data[0]["email"] == "jane@example.com"

        selected = await query_resolver.resolve(db_session, User, {"select": "password_hash"})
        assert set(selected.data[0]) == {"id"}

        filtered = await query_resolver.resolve(db_session, User, {"password_hash": "secret-hash"})
        assert filtered.count == 0
