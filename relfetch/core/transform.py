from typing import Optional

from relfetch.core.classes import RequestConfig, ResourceTraits
from relfetch.core.types import Response


def transform_response(
    response: Response,
    config: RequestConfig,
    resource_traits: Optional[ResourceTraits],
) -> Response:
    """
    Apply a resource's transform hooks to a decoded, reference-resolved response.

    ``transform_response_entry`` runs on every entity of ``data`` (once when
    the response holds a single entity), then ``transform_response`` runs on
    the whole response and its return value replaces it. Both receive the
    request configuration and the head resource name.
    """
    if resource_traits is None:
        return response

    resource = config.head_resource
    transform = resource_traits.transform_response_entry
    if transform is not None:
        data = response.get("data")
        if data is not None:
            if config.is_array:
                response["data"] = [transform(entry, config, resource) for entry in data]
            else:
                response["data"] = transform(data, config, resource)

    transform = resource_traits.transform_response
    if transform is not None:
        response = transform(response, config, resource)

    return response
