"""Lambda entrypoint routing API Gateway requests to the plan and validate routes."""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict

from apiserver.routes import plan, validate

RouteHandler = Callable[[dict[str, Any]], dict[str, Any]]

JSON_HEADERS = {"Content-Type": "application/json"}

ROUTES: Dict[str, RouteHandler] = {
    "POST /plan": plan,
    "POST /validate": validate,
}

logger = logging.getLogger(__name__)


def _route_key(event: dict[str, Any]) -> str:
    # REST API (v1) events carry httpMethod/resource; HTTP API (v2) events carry routeKey.
    if event.get("routeKey") and event["routeKey"] != "$default":
        return str(event["routeKey"])
    http = (event.get("requestContext") or {}).get("http") or {}
    method = event.get("httpMethod") or http.get("method") or "GET"
    path = event.get("resource") or event.get("rawPath") or event.get("path") or "/"
    return f"{method.upper()} {path}"


def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    key = _route_key(event)
    handler = ROUTES.get(key)
    if handler is None:
        logger.info("no route for %s", key)
        return {"statusCode": 404, "headers": dict(JSON_HEADERS), "body": json.dumps({"message": "Route not found"})}

    response = handler(event)
    response.setdefault("headers", dict(JSON_HEADERS))
    if not isinstance(response.get("body"), str):
        response["body"] = json.dumps(response.get("body"))
    logger.debug("%s -> %s", key, response["statusCode"])
    return response
