from unittest import TestCase
from unittest.mock import Mock

from relfetch.core.classes import RequestConfig, ResourceTraits
from relfetch.core.transform import transform_response


class TransformResponseTests(TestCase):
    def test_no_traits_passthrough(self):
        response = {"data": [{"id": 1}]}
        config = RequestConfig(resource="users")
        self.assertIs(transform_response(response, config, None), response)

    def test_entry_transform_on_list(self):
        traits = ResourceTraits(
            transform_response_entry=lambda entry, config, resource: {**entry, "r": resource}
        )
        config = RequestConfig(resource=("users", {"company": "companies"}))
        response = transform_response({"data": [{"id": 1}, {"id": 2}]}, config, traits)
        self.assertEqual(response["data"], [{"id": 1, "r": "users"}, {"id": 2, "r": "users"}])

    def test_entry_transform_on_single(self):
        entry_transform = Mock(return_value={"id": 1, "x": True})
        traits = ResourceTraits(transform_response_entry=entry_transform)
        config = RequestConfig(resource="users", is_array=False, id=1)
        response = transform_response({"data": {"id": 1}}, config, traits)
        entry_transform.assert_called_once_with({"id": 1}, config, "users")
        self.assertEqual(response["data"], {"id": 1, "x": True})

    def test_entry_transform_skipped_without_data(self):
        entry_transform = Mock()
        traits = ResourceTraits(transform_response_entry=entry_transform)
        config = RequestConfig(resource="users")
        transform_response({"data": None}, config, traits)
        entry_transform.assert_not_called()

    def test_response_transform_runs_after_entry_transform(self):
        order = []

        def entry_transform(entry, config, resource):
            order.append("entry")
            return entry

        def whole_transform(response, config, resource):
            order.append("response")
            return {"items": response["data"]}

        traits = ResourceTraits(
            transform_response_entry=entry_transform, transform_response=whole_transform
        )
        config = RequestConfig(resource="users")
        response = transform_response({"data": [{"id": 1}]}, config, traits)
        self.assertEqual(order, ["entry", "response"])
        self.assertEqual(response, {"items": [{"id": 1}]})

    def test_traits_without_hooks(self):
        response = {"data": [{"id": 1}]}
        config = RequestConfig(resource="users")
        self.assertEqual(
            transform_response(response, config, ResourceTraits(identifier="uid")),
            {"data": [{"id": 1}]},
        )
