"""
Tests for filter, ordering and id translation.
"""

from unittest import TestCase

from relfetch.core.classes import RequestConfig, ResourceTraits
from relfetch.core.exceptions import (ConflictingIdentifierFilter,
                                      InvalidOrderBySpecification,
                                      UnsupportedFilterCondition)
from relfetch.core.filters import (build_request_options,
                                   strip_lookup_operator, translate_filters,
                                   translate_order_by)


class TranslateFiltersTests(TestCase):
    def test_gte(self):
        self.assertEqual(translate_filters({"age": {"$gte": 18}}), {"age__gte": 18})

    def test_in_list_is_comma_joined(self):
        self.assertEqual(
            translate_filters({"name": {"$in": ["a", "b"]}}), {"name__in": "a,b"}
        )

    def test_in_scalar_passes_through(self):
        self.assertEqual(translate_filters({"name": {"$in": "a"}}), {"name__in": "a"})

    def test_in_booleans(self):
        self.assertEqual(
            translate_filters({"active": {"$in": [True, False]}}),
            {"active__in": "true,false"},
        )

    def test_equality_literal(self):
        self.assertEqual(translate_filters({"status": "open"}), {"status": "open"})

    def test_none_value_emits_nothing(self):
        self.assertEqual(translate_filters({"status": None}), {})

    def test_multiple_operators_on_one_field(self):
        self.assertEqual(
            translate_filters({"age": {"$gt": 1, "$lt": 10}}),
            {"age__gt": 1, "age__lt": 10},
        )

    def test_all_string_operators(self):
        params = translate_filters({
            "name": {
                "$startswith": "a",
                "$istartswith": "b",
                "$endswith": "c",
                "$iendswith": "d",
                "$contains": "e",
                "$icontains": "f",
                "$ne": "g",
            }
        })
        self.assertEqual(params, {
            "name__startswith": "a",
            "name__istartswith": "b",
            "name__endswith": "c",
            "name__iendswith": "d",
            "name__contains": "e",
            "name__icontains": "f",
            "name__ne": "g",
        })

    def test_unknown_operator(self):
        with self.assertRaises(UnsupportedFilterCondition):
            translate_filters({"age": {"$between": [1, 2]}})

    def test_non_in_values_are_not_converted(self):
        self.assertEqual(translate_filters({"n": {"$gt": [1, 2]}}), {"n__gt": [1, 2]})


class TranslateOrderByTests(TestCase):
    def test_string_passthrough(self):
        self.assertEqual(translate_order_by("-created"), "-created")

    def test_mapping_descending(self):
        self.assertEqual(translate_order_by({"created": -1}), "-created")

    def test_mapping_last_entry_wins(self):
        """Only one ordering is emitted for a multi-field mapping."""
        self.assertEqual(translate_order_by({"name": 1, "created": -1}), "-created")
        self.assertEqual(translate_order_by({"created": -1, "name": 1}), "name")

    def test_none(self):
        self.assertIsNone(translate_order_by(None))

    def test_invalid(self):
        with self.assertRaises(InvalidOrderBySpecification):
            translate_order_by(["name"])

    def test_non_numeric_direction(self):
        for direction in ("desc", None, True):
            with self.subTest(direction=direction):
                with self.assertRaises(InvalidOrderBySpecification):
                    translate_order_by({"name": direction})


class StripLookupOperatorTests(TestCase):
    def test_simple_field(self):
        self.assertEqual(strip_lookup_operator("status"), "status")

    def test_with_in_operator(self):
        self.assertEqual(strip_lookup_operator("id__in"), "id")

    def test_nested_field_with_operator(self):
        self.assertEqual(strip_lookup_operator("user__email__icontains"), "user__email")


class BuildRequestOptionsTests(TestCase):
    def test_scalar_id_goes_in_url(self):
        config = RequestConfig(resource="users", is_array=False, id=5)
        options = build_request_options(config)
        self.assertEqual(options["url"], "users/5")
        self.assertEqual(options["params"], {})
        self.assertEqual(options["method"], "GET")

    def test_scalar_id_with_trailing_slash(self):
        config = RequestConfig(resource="users/", is_array=False, id="abc")
        self.assertEqual(build_request_options(config)["url"], "users/abc")

    def test_zero_id_is_an_id(self):
        config = RequestConfig(resource="users", is_array=False, id=0)
        self.assertEqual(build_request_options(config)["url"], "users/0")

    def test_id_set_becomes_in_filter(self):
        config = RequestConfig(resource="users", id=[1, 2])
        options = build_request_options(config)
        self.assertEqual(options["url"], "users")
        self.assertEqual(options["params"], {"id__in": "1,2"})

    def test_id_set_uses_trait_identifier(self):
        config = RequestConfig(resource="users", id=["a", "b"])
        options = build_request_options(config, ResourceTraits(identifier="uid"))
        self.assertEqual(options["params"], {"uid__in": "a,b"})

    def test_id_set_uses_config_default_identifier(self):
        config = RequestConfig(resource="users", id=[1], default_identifier="pk")
        self.assertEqual(build_request_options(config)["params"], {"pk__in": "1"})

    def test_conflicting_identifier_filter(self):
        config = RequestConfig(resource="users", id=[1, 2], filters={"id": {"$in": [3]}})
        with self.assertRaises(ConflictingIdentifierFilter):
            build_request_options(config)

    def test_conflicting_equality_identifier_filter(self):
        config = RequestConfig(resource="users", id=[1, 2], filters={"id": 3})
        with self.assertRaises(ConflictingIdentifierFilter):
            build_request_options(config)

    def test_conflicting_precompiled_identifier_filter(self):
        config = RequestConfig(resource="users", id=[1, 2], filters={"id__in": "3"})
        with self.assertRaises(ConflictingIdentifierFilter):
            build_request_options(config)

    def test_identifier_filter_without_id_set_is_fine(self):
        config = RequestConfig(resource="users", filters={"id": {"$in": [3]}})
        self.assertEqual(build_request_options(config)["params"], {"id__in": "3"})

    def test_derived_params_override_caller_params(self):
        config = RequestConfig(
            resource="users",
            filters={"age": {"$gte": 18}},
            params={"age__gte": 1, "page": 2},
        )
        self.assertEqual(
            build_request_options(config)["params"], {"age__gte": 18, "page": 2}
        )

    def test_ordering_overrides_caller_ordering(self):
        config = RequestConfig(
            resource="users", order_by={"name": -1}, params={"ordering": "id"}
        )
        self.assertEqual(build_request_options(config)["params"], {"ordering": "-name"})

    def test_camel_case_alias(self):
        config = RequestConfig.model_validate({"resource": "users", "orderBy": "name"})
        self.assertEqual(build_request_options(config)["params"], {"ordering": "name"})

    def test_headers_are_copied(self):
        headers = {"X-Trace": "1"}
        config = RequestConfig(resource="users", headers=headers)
        options = build_request_options(config)
        self.assertEqual(options["headers"], headers)

    def test_head_of_reference_spec_is_the_url(self):
        config = RequestConfig(resource=("posts", {"author": "users"}))
        self.assertEqual(build_request_options(config)["url"], "posts")
