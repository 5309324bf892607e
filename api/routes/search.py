# SPDX-License-Identifier: Apache-2.0

"""
Free-text registry search across vehicles, drivers and fines.
"""

from flask import jsonify
from flask_openapi3 import APIBlueprint, Tag
from opentelemetry import trace
import logging

from domain import scoping
from models.entities import Driver, Fine, UserContext, Vehicle
from models.requests import SearchQuery
from services.mongodb import DRIVERS, FINES, VEHICLES
from routes.common import load_query, merge_filters, mongo, permission_required, require_jwt
from routes.drivers import driver_response
from routes.vehicles import vehicle_response

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

search_tag = Tag(name="Search", description="Registry search")
search_bp = APIBlueprint(
    'search',
    __name__,
    url_prefix='/api/search',
    abp_tags=[search_tag]
)

SEARCHABLE = {
    "vehicles": (VEHICLES, Vehicle, vehicle_response, scoping.vehicle_filter),
    "drivers": (DRIVERS, Driver, driver_response, scoping.driver_filter),
    "fines": (FINES, Fine, lambda fine: fine.to_response(), lambda user_context: {}),
}


@search_bp.get('')
@require_jwt
@permission_required('search', 'read')
def search(user_context: UserContext):
    """
    Search the registry.

    Plates can be typed with or without hyphens. Without a type, every
    searchable resource is queried and results are grouped per resource.
    """
    query = load_query(SearchQuery)
    resources = [query.type] if query.type else list(SEARCHABLE)

    with tracer.start_as_current_span(
        "search.query",
        attributes={"user.id": user_context.user_id, "search.resources": ",".join(resources)}
    ) as span:
        results = {}
        total = 0
        for resource in resources:
            collection, entity_class, serialize, scope = SEARCHABLE[resource]
            filters = merge_filters(scope(user_context), scoping.search_filter(resource, query.q))
            documents = mongo().find(collection, filters, limit=query.limit)
            results[resource] = [serialize(entity_class.from_document(document)) for document in documents]
            total += len(results[resource])

        span.set_attribute("search.total", total)
        logger.info(
            "Registry search",
            extra={"term": query.q, "resources": resources, "total": total, "user_id": user_context.user_id}
        )
        return jsonify({"query": query.q, "results": results, "total": total}), 200
