# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
HAL (Hypertext Application Language) response formatting utilities.
Adds navigation and affordance links to donor resources and problem documents.
"""

from typing import Dict, List, Any, Optional
from urllib.parse import urljoin, urlencode, quote

from ..models.responses import HalLink

DONORS_PATH = "/api/donors"


class HalLinkBuilder:
    """Builder for HAL links with proper URL construction."""

    def __init__(self, base_url: str):
        self.base_url = base_url.rstrip('/') + '/'

    def build_link(
        self,
        path: str,
        method: str = "GET",
        content_type: Optional[str] = None,
        title: Optional[str] = None,
        templated: bool = False
    ) -> HalLink:
        """Build a HAL link with proper URL construction."""
        href = urljoin(self.base_url, path.lstrip('/'))

        return HalLink(
            href=href,
            method=method,
            type=content_type,
            title=title,
            templated=templated or None
        )

    def build_self_link(self, resource_path: str) -> HalLink:
        """Build self link for a resource."""
        return self.build_link(resource_path, title="Self")

    def build_collection_link(self, collection_path: str) -> HalLink:
        """Build link to parent collection."""
        return self.build_link(collection_path, title="Collection")


class HalResponseBuilder:
    """HAL response builder for donor resources, collections and errors."""

    def __init__(self, base_url: str):
        self.base_url = base_url.rstrip('/')
        self.link_builder = HalLinkBuilder(base_url)

    def build_donor_links(self, donor_id: str) -> Dict[str, HalLink]:
        """Build the links every donor resource carries."""
        resource_path = f"{DONORS_PATH}/{donor_id}"
        return {
            'self': self.link_builder.build_self_link(resource_path),
            'collection': self.link_builder.build_collection_link(DONORS_PATH),
            'edit': self.link_builder.build_link(
                resource_path,
                method="PUT",
                content_type="application/json",
                title="Edit donor"
            ),
            'delete': self.link_builder.build_link(
                resource_path,
                method="DELETE",
                title="Delete donor"
            )
        }

    def build_resource_response(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Build a HAL resource response for a donor."""
        response = dict(data)
        links = self.build_donor_links(str(data.get('id', '')))
        response['_links'] = {rel: link.model_dump(exclude_none=True) for rel, link in links.items()}
        return response

    def build_collection_response(
        self,
        items: List[Dict[str, Any]],
        collection_path: str,
        query_params: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Build a HAL collection response with embedded donors."""
        params = {key: value for key, value in (query_params or {}).items() if value is not None}
        self_path = f"{collection_path}?{urlencode(params)}" if params else collection_path

        links = {
            'self': self.link_builder.build_link(self_path, title="Current collection"),
            'statistics': self.link_builder.build_link(f"{DONORS_PATH}/statistics", title="Donor statistics"),
            'create': self.link_builder.build_link(
                DONORS_PATH,
                method="POST",
                content_type="application/json",
                title="Register donor"
            )
        }

        return {
            'total': len(items),
            '_links': {rel: link.model_dump(exclude_none=True) for rel, link in links.items()},
            '_embedded': {
                'donors': [self.build_resource_response(item) for item in items]
            }
        }

    def build_error_response(
        self,
        error_type: str,
        title: str,
        status: int,
        detail: str,
        instance: str,
        kind: Optional[str] = None,
        validation_errors: Optional[List[Dict[str, Any]]] = None
    ) -> Dict[str, Any]:
        """Build RFC 7807 compliant error response with HAL links."""
        error_response = {
            'type': f"https://api.donor-registry.org/problems/{error_type}",
            'title': title,
            'status': status,
            'detail': detail,
            'instance': instance
        }

        if kind:
            error_response['kind'] = kind

        if validation_errors:
            error_response['errors'] = validation_errors

        links = {
            'help': self.link_builder.build_link(
                f"/docs/errors#{error_type}",
                title="Error documentation"
            )
        }

        if error_type == "validation-error":
            links['schema'] = self.link_builder.build_link(
                "/openapi/openapi.json",
                title="API schema"
            )
        elif error_type == "resource-not-found":
            links['collection'] = self.link_builder.build_collection_link(DONORS_PATH)

        error_response['_links'] = {rel: link.model_dump(exclude_none=True) for rel, link in links.items()}
        return error_response


class HalFormatter:
    """High-level HAL formatter with convenience methods."""

    def __init__(self, base_url: str):
        self.builder = HalResponseBuilder(base_url)

    def format_donor(self, donor: Dict[str, Any]) -> Dict[str, Any]:
        """Format a donor with HAL links."""
        return self.builder.build_resource_response(donor)

    def format_donor_collection(
        self,
        donors: List[Dict[str, Any]],
        collection_path: str = DONORS_PATH,
        filters: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Format a collection of donors with HAL links."""
        return self.builder.build_collection_response(donors, collection_path, filters)

    def format_blood_group_collection(self, donors: List[Dict[str, Any]], blood_group: str) -> Dict[str, Any]:
        """Format the donors of one blood group."""
        path = f"{DONORS_PATH}/blood-group/{quote(blood_group, safe='')}"
        return self.builder.build_collection_response(donors, path)

    def format_validation_error(
        self,
        detail: str,
        instance: str,
        validation_errors: List[Dict[str, Any]],
        kind: Optional[str] = None,
        status: int = 422
    ) -> Dict[str, Any]:
        """Format a validation error response."""
        return self.builder.build_error_response(
            "validation-error",
            "Validation Error",
            status,
            detail,
            instance,
            kind,
            validation_errors
        )

    def format_bad_request_error(self, detail: str, instance: str, kind: Optional[str] = None) -> Dict[str, Any]:
        """Format a bad request error response."""
        return self.builder.build_error_response(
            "bad-request",
            "Bad Request",
            400,
            detail,
            instance,
            kind
        )

    def format_not_found_error(self, detail: str, instance: str, kind: Optional[str] = None) -> Dict[str, Any]:
        """Format a not found error response."""
        return self.builder.build_error_response(
            "resource-not-found",
            "Resource Not Found",
            404,
            detail,
            instance,
            kind
        )

    def format_conflict_error(self, detail: str, instance: str, kind: Optional[str] = None) -> Dict[str, Any]:
        """Format a conflict error response."""
        return self.builder.build_error_response(
            "resource-conflict",
            "Resource Conflict",
            409,
            detail,
            instance,
            kind
        )

    def format_server_error(self, detail: str, instance: str, kind: Optional[str] = None) -> Dict[str, Any]:
        """Format a server error response."""
        return self.builder.build_error_response(
            "internal-server-error",
            "Internal Server Error",
            500,
            detail,
            instance,
            kind
        )


def create_hal_formatter(base_url: str) -> HalFormatter:
    """Create a HAL formatter instance."""
    return HalFormatter(base_url)
