# SPDX-License-Identifier: Apache-2.0

"""
Registry summary report endpoint.
"""

from datetime import date
from flask import jsonify
from flask_openapi3 import APIBlueprint, Tag
from opentelemetry import trace
import logging

from domain import scoping
from domain.reports import build_summary, period_start
from models.entities import Document, Driver, Fine, UserContext, Vehicle
from models.requests import ReportQuery
from services.mongodb import DOCUMENTS, DRIVERS, FINES, VEHICLES
from routes.common import (
    load_query, merge_filters, mongo, owned_licenses, owned_plates, permission_required, require_jwt
)

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

reports_tag = Tag(name="Reports", description="Registry statistics")
reports_bp = APIBlueprint(
    'reports',
    __name__,
    url_prefix='/api/reports',
    abp_tags=[reports_tag]
)


def _load(collection, entity_class, *filters):
    return [entity_class.from_document(document) for document in mongo().find(collection, merge_filters(*filters))]


@reports_bp.get('/summary')
@require_jwt
@permission_required('reports', 'read')
def get_summary(user_context: UserContext):
    """
    Summary figures for the caller's scope.

    Operators see the whole registry; companies see their fleet, their
    drivers and the fines raised against either.
    """
    query = load_query(ReportQuery)
    today = date.today()

    with tracer.start_as_current_span(
        "reports.summary",
        attributes={"user.id": user_context.user_id, "report.period": query.period or "all"}
    ) as span:
        start = period_start(query.period, today)
        created = {"createdAt": {"$gte": start}} if start else None

        if scoping.is_staff(user_context):
            fine_scope = {}
        else:
            fine_scope = scoping.fine_filter(
                user_context,
                owned_licenses(user_context.user_id),
                owned_plates(user_context.user_id)
            )

        vehicles = _load(VEHICLES, Vehicle, scoping.vehicle_filter(user_context), created)
        drivers = _load(DRIVERS, Driver, scoping.driver_filter(user_context), created)
        documents = _load(DOCUMENTS, Document, scoping.document_filter(user_context), created)
        fines = [] if fine_scope is None else _load(FINES, Fine, fine_scope, created)

        summary = build_summary(vehicles, drivers, fines, documents, today)
        span.set_attribute("report.fines_applied", summary.fines_applied)

        logger.info(
            "Summary report generated",
            extra={"period": query.period or "all", "user_id": user_context.user_id}
        )

        data = summary.to_dict()
        data["period"] = query.period or "all"
        data["generated_at"] = today.isoformat()
        return jsonify(data), 200
