"""HTTP Request node - makes HTTP requests to external APIs."""

from __future__ import annotations

import json
import logging
from typing import Any, TYPE_CHECKING

import httpx

from ..base import (
    BaseNode,
    NodeTypeDescription,
    NodeInputDefinition,
    NodeOutputDefinition,
    NodeProperty,
    NodePropertyOption,
)

if TYPE_CHECKING:
    from ...engine.types import ExecutionContext, NodeData, NodeDefinition, NodeExecutionResult

logger = logging.getLogger(__name__)

BODY_METHODS = ("POST", "PUT", "PATCH", "DELETE")


class HttpRequestNode(BaseNode):
    """HTTP Request node - one request per input item."""

    node_description = NodeTypeDescription(
        name="HttpRequest",
        display_name="HTTP Request",
        description="Makes HTTP requests to external APIs",
        category="core",
        icon="fa:globe",
        group=("transform",),
        inputs=(NodeInputDefinition(name="main", display_name="Input"),),
        outputs=(NodeOutputDefinition(name="main", display_name="Response"),),
        properties=(
            NodeProperty(
                display_name="Method",
                name="method",
                type="options",
                default="GET",
                required=True,
                options=tuple(
                    NodePropertyOption(name=m, value=m)
                    for m in ("GET", "POST", "PUT", "PATCH", "DELETE", "HEAD")
                ),
            ),
            NodeProperty(
                display_name="URL",
                name="url",
                type="string",
                default="",
                required=True,
                placeholder="https://api.example.com/endpoint",
                description="The URL to make the request to. Supports expressions.",
            ),
            NodeProperty(
                display_name="Headers",
                name="headers",
                type="collection",
                default=[],
                description="HTTP headers to send with the request",
                type_options={"multipleValues": True},
            ),
            NodeProperty(
                display_name="Body",
                name="body",
                type="json",
                default="",
                description="Request body (for POST, PUT, PATCH, DELETE). Supports expressions.",
                type_options={"language": "json", "rows": 10},
                display_options={"show": {"method": list(BODY_METHODS)}},
            ),
            NodeProperty(
                display_name="Timeout (ms)",
                name="timeout",
                type="number",
                default=30000,
            ),
        ),
    )

    async def execute(
        self,
        context: ExecutionContext,
        node_definition: NodeDefinition,
        input_data: list[NodeData],
    ) -> NodeExecutionResult:
        from ...engine.expression_engine import ExpressionEngine, expression_engine
        from ...engine.types import NodeData

        method = str(self.get_parameter(node_definition, "method", "GET")).upper()
        timeout = float(self.get_parameter(node_definition, "timeout", 30000)) / 1000.0
        items = input_data if input_data else [NodeData(json={})]

        async def make_requests(client: httpx.AsyncClient) -> list[NodeData]:
            results: list[NodeData] = []
            for idx in range(len(items)):
                expr_context = ExpressionEngine.create_context(
                    items,
                    context.run_state,
                    context.execution_id,
                    item_index=idx,
                    mode=context.mode,
                )
                url = expression_engine.resolve(self.get_parameter(node_definition, "url"), expr_context)
                headers = self._build_headers(
                    expression_engine.resolve(
                        self.get_parameter(node_definition, "headers", []), expr_context
                    )
                )
                body = None
                if method in BODY_METHODS:
                    body = self._parse_body(
                        expression_engine.resolve(node_definition.parameters.get("body"), expr_context)
                    )

                try:
                    response = await client.request(
                        method=method,
                        url=str(url),
                        headers=headers,
                        json=body if isinstance(body, (dict, list)) else None,
                        content=body if isinstance(body, str) and body else None,
                        timeout=timeout,
                    )
                except httpx.HTTPError as e:
                    logger.warning("HTTP request to %s failed: %s", url, e)
                    results.append(NodeData.error_item(str(e) or type(e).__name__, statusCode=None))
                    continue

                if response.is_error:
                    results.append(NodeData.error_item(
                        f"Request failed with status code {response.status_code}",
                        statusCode=response.status_code,
                        body=self._response_body(response),
                    ))
                    continue

                results.append(NodeData(json={
                    "statusCode": response.status_code,
                    "headers": dict(response.headers),
                    "body": self._response_body(response),
                }))
            return results

        if context.http_client:
            return self.output(await make_requests(context.http_client))
        async with httpx.AsyncClient() as client:
            return self.output(await make_requests(client))

    def _build_headers(self, headers_param: Any) -> dict[str, str]:
        headers: dict[str, str] = {}
        if isinstance(headers_param, list):
            for h in headers_param:
                if isinstance(h, dict) and h.get("name"):
                    headers[h["name"]] = str(h.get("value", ""))
        elif isinstance(headers_param, dict):
            headers.update({k: str(v) for k, v in headers_param.items()})
        return headers

    def _parse_body(self, body: Any) -> Any:
        if isinstance(body, str) and body:
            try:
                return json.loads(body)
            except json.JSONDecodeError:
                return body  # Keep as string
        return body

    def _response_body(self, response: httpx.Response) -> Any:
        if "json" in response.headers.get("content-type", ""):
            try:
                return response.json()
            except ValueError:
                pass
        return response.text
