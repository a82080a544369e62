"""Webhook node - HTTP webhook receiver."""

from __future__ import annotations

import base64
import binascii
import hmac
from typing import Any, TYPE_CHECKING

from ...core.exceptions import WebhookHandlerError
from ..base import (
    BaseNode,
    NodeTypeDescription,
    NodeOutputDefinition,
    NodeProperty,
    NodePropertyOption,
    utc_timestamp,
)

if TYPE_CHECKING:
    from ...engine.types import (
        ExecutionContext,
        NodeData,
        NodeDefinition,
        NodeExecutionResult,
        WebhookRequest,
        WebhookResult,
    )

HTTP_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE", "HEAD")


class WebhookNode(BaseNode):
    """Webhook trigger node - turns an inbound HTTP request into a workflow item."""

    node_description = NodeTypeDescription(
        name="Webhook",
        display_name="Webhook",
        description="Trigger workflow via HTTP webhook",
        category="triggers",
        icon="fa:bolt",
        group=("trigger",),
        inputs=(),  # No inputs - this is a trigger
        outputs=(NodeOutputDefinition(name="main", display_name="Output"),),
        properties=(
            NodeProperty(
                display_name="Authentication",
                name="authentication",
                type="options",
                default="none",
                options=(
                    NodePropertyOption(name="None", value="none"),
                    NodePropertyOption(name="Basic Auth", value="basicAuth"),
                    NodePropertyOption(name="Header Auth", value="headerAuth"),
                ),
            ),
            NodeProperty(
                display_name="HTTP Method",
                name="httpMethod",
                type="options",
                default="GET",
                options=tuple(NodePropertyOption(name=m, value=m) for m in HTTP_METHODS),
            ),
            NodeProperty(
                display_name="Path",
                name="path",
                type="string",
                default="",
                required=True,
                placeholder="/hooks/my-workflow",
                description="Path the webhook listens on",
            ),
            NodeProperty(
                display_name="Response Mode",
                name="responseMode",
                type="options",
                default="onReceived",
                options=(
                    NodePropertyOption(
                        name="On Received",
                        value="onReceived",
                        description="Respond immediately when webhook is received",
                    ),
                    NodePropertyOption(
                        name="Last Node",
                        value="lastNode",
                        description="Respond once the workflow has run; poll the execution for its output",
                    ),
                ),
            ),
            NodeProperty(
                display_name="Response Code",
                name="responseCode",
                type="number",
                default=200,
                display_options={"show": {"responseMode": ["onReceived"]}},
            ),
            NodeProperty(
                display_name="Response Data",
                name="responseData",
                type="string",
                default="success",
                description='"success", "noData", or custom text/JSON. Supports expressions.',
                display_options={"show": {"responseMode": ["onReceived"]}},
            ),
        ),
        is_trigger=True,
        supports_webhook=True,
    )

    async def execute(
        self,
        context: ExecutionContext,
        node_definition: NodeDefinition,
        input_data: list[NodeData],
    ) -> NodeExecutionResult:
        from ...engine.types import NodeData

        # Webhook data comes from input_data (passed by the trigger registry)
        if input_data:
            return self.output(input_data)

        # Fallback for manual execution
        return self.output([
            NodeData(json={
                "headers": {},
                "params": {},
                "query": {},
                "body": {},
                "method": node_definition.parameters.get("httpMethod", "GET"),
                "webhookUrl": node_definition.parameters.get("path", ""),
                "triggeredAt": utc_timestamp(),
            })
        ])

    async def webhook(
        self,
        context: ExecutionContext,
        node_definition: NodeDefinition,
        request: WebhookRequest,
    ) -> WebhookResult:
        from ...engine.expression_engine import ExpressionEngine, expression_engine
        from ...engine.types import NodeData, WebhookResponse, WebhookResult

        # Only enforce the method when one was explicitly configured
        allowed_method = node_definition.parameters.get("httpMethod")
        if allowed_method and allowed_method.upper() != request.method.upper():
            raise WebhookHandlerError(
                f"Method {request.method} not allowed for this webhook", status_code=405
            )

        self._authenticate(node_definition, request, context.credentials)

        path = self.get_parameter(node_definition, "path")
        item = NodeData(json={
            "headers": dict(request.headers),
            "params": dict(request.params),
            "query": dict(request.query),
            "body": request.body if request.body is not None else {},
            "method": request.method.upper(),
            "webhookUrl": f"{request.base_url.rstrip('/')}{path}" if request.base_url else path,
            "triggeredAt": utc_timestamp(),
        })

        response_mode = self.get_parameter(node_definition, "responseMode", "onReceived")
        if response_mode == "lastNode":
            return WebhookResult(items=[item], response_mode="lastNode")

        response_data = self.get_parameter(node_definition, "responseData", "success")
        if response_data == "success":
            body: Any = {"message": "Workflow was started"}
        elif response_data == "noData":
            body = None
        else:
            expr_context = ExpressionEngine.create_context([item], execution_id=context.execution_id)
            body = expression_engine.resolve(response_data, expr_context)

        return WebhookResult(
            items=[item],
            response_mode="onReceived",
            response=WebhookResponse(
                status_code=int(self.get_parameter(node_definition, "responseCode", 200)),
                body=body,
            ),
        )

    def _authenticate(
        self,
        node_definition: NodeDefinition,
        request: WebhookRequest,
        credentials: dict[str, Any],
    ) -> None:
        authentication = self.get_parameter(node_definition, "authentication", "none")
        if authentication == "none":
            return

        headers = {k.lower(): v for k, v in request.headers.items()}

        if authentication == "basicAuth":
            expected_user = credentials.get("user")
            expected_password = credentials.get("password")
            if expected_user is None or expected_password is None:
                raise WebhookHandlerError("Basic auth credentials are not configured", 500)
            auth = headers.get("authorization", "")
            if not auth.lower().startswith("basic "):
                raise WebhookHandlerError("Authorization is required", status_code=401)
            try:
                decoded = base64.b64decode(auth[6:].strip()).decode("utf-8")
            except (binascii.Error, UnicodeDecodeError):
                raise WebhookHandlerError("Authorization data is wrong", status_code=403)
            user, _, password = decoded.partition(":")
            if not (
                hmac.compare_digest(user, str(expected_user))
                and hmac.compare_digest(password, str(expected_password))
            ):
                raise WebhookHandlerError("Authorization data is wrong", status_code=403)

        elif authentication == "headerAuth":
            header_name = credentials.get("name")
            header_value = credentials.get("value")
            if not header_name or header_value is None:
                raise WebhookHandlerError("Header auth credentials are not configured", 500)
            supplied = headers.get(str(header_name).lower())
            if supplied is None:
                raise WebhookHandlerError("Authorization is required", status_code=401)
            if not hmac.compare_digest(supplied, str(header_value)):
                raise WebhookHandlerError("Authorization data is wrong", status_code=403)

        else:
            raise WebhookHandlerError(f'Unknown authentication "{authentication}"', 500)
