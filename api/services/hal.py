# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
HAL (Hypertext Application Language) response formatting utilities.
Implements HATEOAS Level-3 API responses with conditional affordance links:
an action link is only rendered when the authorization gate would allow the
current actor to perform it on the resource in its current state.
"""

from typing import Dict, List, Any, NamedTuple, Optional
from urllib.parse import urljoin, urlencode
import math

from domain.authorization import allowed_actions, get_action_description
from domain.organizations import render_organization
from models.entities import Actor, AuditEntry, HelpRequest, Organization, Pin, Volunteer
from models.enums import Action
from models.responses import HalLink
from .store import PaginationResult

DEFAULT_PROBLEM_BASE_URL = "https://api.quake-response.org/problems/"


class ActionLink(NamedTuple):
    """How an action is exposed as a link on its resource."""
    rel: str
    suffix: Optional[str]
    method: str


# Candidate actions per resource type; the gate decides which are rendered.
RESOURCE_ACTIONS: Dict[str, Dict[Action, ActionLink]] = {
    "pin": {
        Action.PIN_CONFIRM: ActionLink("confirm", "confirm", "POST"),
        Action.PIN_DENY: ActionLink("deny", "deny", "POST"),
        Action.PIN_COMPLETE: ActionLink("complete", "complete", "POST"),
    },
    "request": {
        Action.REQUEST_ASSIGN: ActionLink("assign", "assign", "POST"),
        Action.REQUEST_COMPLETE: ActionLink("complete", "complete", "POST"),
    },
    "volunteer": {
        Action.VOLUNTEER_APPROVE: ActionLink("approve", "approve", "POST"),
        Action.VOLUNTEER_REJECT: ActionLink("reject", "reject", "POST"),
    },
    "organization": {
        Action.ORGANIZATION_APPROVE: ActionLink("approve", "approve", "POST"),
        Action.ORGANIZATION_REJECT: ActionLink("reject", "reject", "POST"),
        Action.ORGANIZATION_UPDATE: ActionLink("edit", None, "PUT"),
        Action.ORGANIZATION_DELETE: ActionLink("delete", None, "DELETE"),
    },
}

COLLECTION_PATHS = {
    "pin": "/api/pins",
    "request": "/api/requests",
    "volunteer": "/api/volunteers",
    "organization": "/api/organizations",
}


class HalLinkBuilder:
    """Builder for HAL links with proper URL construction."""

    def __init__(self, base_url: str):
        self.base_url = base_url.rstrip('/')

    def build_link(
        self,
        path: str,
        method: str = "GET",
        content_type: Optional[str] = None,
        title: Optional[str] = None,
        templated: bool = False
    ) -> HalLink:
        """Build a HAL link with proper URL construction."""
        href = urljoin(self.base_url + '/', path.lstrip('/'))

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

    def build_action_link(
        self,
        resource_path: str,
        action: Optional[str],
        method: str = "POST",
        title: Optional[str] = None
    ) -> HalLink:
        """Build action link for a resource; a None action targets the resource itself."""
        action_path = f"{resource_path}/{action}" if action else resource_path
        return self.build_link(
            action_path,
            method=method,
            content_type="application/json" if method in ("POST", "PUT") else None,
            title=title or (action or method).title()
        )


class PaginationLinkBuilder:
    """Builder for pagination links in HAL collections."""

    def __init__(self, base_url: str):
        self.link_builder = HalLinkBuilder(base_url)

    def _page_link(self, base_path: str, params: Dict[str, Any], page: int, page_size: int, title: str) -> HalLink:
        query = urlencode({**params, 'page': page, 'pageSize': page_size})
        return self.link_builder.build_link(f"{base_path}?{query}", title=title)

    def build_pagination_links(
        self,
        base_path: str,
        current_page: int,
        total_pages: int,
        page_size: int,
        query_params: Optional[Dict[str, Any]] = None
    ) -> Dict[str, HalLink]:
        """Build pagination links for a collection."""
        params = {key: value for key, value in (query_params or {}).items() if value is not None}

        links = {'self': self._page_link(base_path, params, current_page, page_size, "Current page")}

        if current_page > 1:
            links['first'] = self._page_link(base_path, params, 1, page_size, "First page")
            links['prev'] = self._page_link(base_path, params, current_page - 1, page_size, "Previous page")

        if current_page < total_pages:
            links['next'] = self._page_link(base_path, params, current_page + 1, page_size, "Next page")
            links['last'] = self._page_link(base_path, params, total_pages, page_size, "Last page")

        return links


class AffordanceLinkBuilder:
    """Builder for conditional affordance links based on the authorization gate."""

    def __init__(self, base_url: str):
        self.link_builder = HalLinkBuilder(base_url)

    def build_affordances(self, resource_type: str, target: Any, actor: Optional[Actor]) -> Dict[str, HalLink]:
        """
        Build self, collection and permitted action links for a resource.

        Args:
            resource_type: Key of RESOURCE_ACTIONS
            target: Record the links describe
            actor: Actor the response is rendered for

        Returns:
            Mapping of link relation to link
        """
        collection_path = COLLECTION_PATHS[resource_type]
        base_path = f"{collection_path}/{target.id}"

        links = {
            'self': self.link_builder.build_self_link(base_path),
            'collection': self.link_builder.build_collection_link(collection_path),
        }

        candidates = RESOURCE_ACTIONS.get(resource_type, {})
        for action in allowed_actions(actor, candidates, target):
            link = candidates[action]
            links[link.rel] = self.link_builder.build_action_link(
                base_path, link.suffix, method=link.method, title=get_action_description(action)
            )

        return links


class HalFormatter:
    """High-level HAL formatter with convenience methods."""

    def __init__(self, base_url: str, problem_base_url: str = DEFAULT_PROBLEM_BASE_URL):
        self.base_url = base_url.rstrip('/')
        self.problem_base_url = problem_base_url.rstrip('/') + '/'
        self.link_builder = HalLinkBuilder(base_url)
        self.pagination_builder = PaginationLinkBuilder(base_url)
        self.affordance_builder = AffordanceLinkBuilder(base_url)

    @staticmethod
    def _dump_links(links: Dict[str, HalLink]) -> Dict[str, Dict[str, Any]]:
        return {rel: link.model_dump(exclude_none=True) for rel, link in links.items()}

    def _resource(self, data: Dict[str, Any], resource_type: str, target: Any, actor: Optional[Actor]) -> Dict[str, Any]:
        response = dict(data)
        links = self.affordance_builder.build_affordances(resource_type, target, actor)
        response['_links'] = self._dump_links(links)
        return response

    def format_pin(self, pin: Pin, actor: Optional[Actor]) -> Dict[str, Any]:
        """Format a pin with its lifecycle affordances."""
        return self._resource(pin.to_json(), "pin", pin, actor)

    def format_help_request(self, request: HelpRequest, actor: Optional[Actor]) -> Dict[str, Any]:
        """Format a help request; assign also links the candidate list."""
        response = self._resource(request.to_json(), "request", request, actor)
        if 'assign' in response['_links']:
            response['_links']['candidates'] = self.link_builder.build_link(
                "/api/requests/candidates", title="Eligible volunteers"
            ).model_dump(exclude_none=True)
        return response

    def format_volunteer(self, volunteer: Volunteer, actor: Optional[Actor]) -> Dict[str, Any]:
        return self._resource(volunteer.to_json(), "volunteer", volunteer, actor)

    def format_organization(self, organization: Organization, actor: Optional[Actor]) -> Dict[str, Any]:
        """Format an organization without its secret, and without financials unless permitted."""
        return self._resource(render_organization(organization, actor), "organization", organization, actor)

    def format_actor(self, actor: Actor) -> Dict[str, Any]:
        response = actor.to_json()
        links = {'self': self.link_builder.build_self_link("/api/auth/me")}
        if actor.organization_id:
            links['organization'] = self.link_builder.build_link(
                f"/api/organizations/{actor.organization_id}", title="Organization"
            )
        links['logout'] = self.link_builder.build_link(
            "/api/auth/logout", method="POST", title="End session"
        )
        response['_links'] = self._dump_links(links)
        return response

    def format_audit_entry(self, entry: AuditEntry) -> Dict[str, Any]:
        return entry.to_json()

    def format_collection(
        self,
        items: List[Dict[str, Any]],
        pagination: PaginationResult,
        collection_path: str,
        query_params: Optional[Dict[str, Any]] = None,
        extra_links: Optional[Dict[str, HalLink]] = None
    ) -> Dict[str, Any]:
        """Build a HAL collection response with pagination links."""
        page_size = pagination.page_size
        total_pages = max(1, math.ceil(pagination.total / page_size)) if page_size > 0 else 1

        links = self.pagination_builder.build_pagination_links(
            collection_path,
            pagination.page,
            total_pages,
            page_size,
            query_params
        )
        if extra_links:
            links.update(extra_links)

        return {
            'total': pagination.total,
            'page': pagination.page,
            'pageSize': page_size,
            'totalPages': total_pages,
            '_links': self._dump_links(links),
            '_embedded': {
                'items': items
            }
        }

    def format_error(
        self,
        error_type: str,
        title: str,
        status: int,
        detail: str,
        instance: str,
        validation_errors: Optional[List[Dict[str, Any]]] = None
    ) -> Dict[str, Any]:
        """Build RFC 7807 compliant error response with HAL links."""
        error_response = {
            'type': f"{self.problem_base_url}{error_type}",
            'title': title,
            'status': status,
            'detail': detail,
            'instance': instance
        }

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
        elif error_type == "authentication-required":
            links['login'] = self.link_builder.build_link(
                "/api/auth/login",
                method="POST",
                content_type="application/json",
                title="Login"
            )
        elif error_type == "insufficient-permissions":
            links['me'] = self.link_builder.build_link(
                "/api/auth/me",
                title="Current actor"
            )

        error_response['_links'] = self._dump_links(links)
        return error_response


def create_hal_formatter(base_url: str, problem_base_url: str = DEFAULT_PROBLEM_BASE_URL) -> HalFormatter:
    """Create a HAL formatter instance."""
    return HalFormatter(base_url, problem_base_url)
