"""Tests for storefront_assistant/dialogflow_client.py"""

from dataclasses import replace

import pytest
from google.api_core import exceptions as core_exceptions
from google.cloud import dialogflowcx_v3

from storefront_assistant.dialogflow_client import (
    DialogflowClient,
    DialogflowConfigError,
)
from storefront_assistant.dialogflow_parser import extract_products, extract_text


class FakeSessionsClient:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.requests = []

    def detect_intent(self, request, timeout=None):
        self.requests.append((request, timeout))
        if self.error:
            raise self.error
        return self.response


def make_response():
    handler = dialogflowcx_v3.ResponseMessage.ResponseType.HANDLER_PROMPT
    return dialogflowcx_v3.DetectIntentResponse(
        query_result=dialogflowcx_v3.QueryResult(
            response_messages=[
                dialogflowcx_v3.ResponseMessage(
                    text=dialogflowcx_v3.ResponseMessage.Text(text=["Try these drills"]),
                    response_type=handler,
                ),
                dialogflowcx_v3.ResponseMessage(
                    payload={
                        "richContent": [
                            [
                                {
                                    "type": "info",
                                    "subtitle": "18V cordless",
                                    "metadata": {"title": "Cordless Drill", "availability": False},
                                }
                            ]
                        ]
                    },
                    response_type=handler,
                ),
            ],
            match=dialogflowcx_v3.Match(
                intent=dialogflowcx_v3.Intent(display_name="product.search"),
                confidence=0.5,
            ),
            parameters={"tool": "drill"},
        )
    )


class TestConstruction:
    def test_missing_agent_id_raises(self, settings):
        with pytest.raises(DialogflowConfigError):
            DialogflowClient(replace(settings, agent_id=""), sessions_client=FakeSessionsClient())

    def test_create_captures_error(self, settings):
        init = DialogflowClient.create(replace(settings, project_id=""))
        assert not init.ok
        assert "GOOGLE_CLOUD_PROJECT_ID" in init.error

    def test_session_path(self, settings):
        client = DialogflowClient(settings, sessions_client=FakeSessionsClient())
        assert (
            client.session_path("abc")
            == "projects/demo-project/locations/global/agents/agent-123/sessions/abc"
        )


class TestBuildRequest:
    def test_request_fields(self, settings):
        client = DialogflowClient(replace(settings, language_code="en-NZ"), sessions_client=FakeSessionsClient())
        request = client.build_request("need a drill", "s-1")
        assert request.session.endswith("/sessions/s-1")
        assert request.query_input.text.text == "need a drill"
        assert request.query_input.language_code == "en-NZ"
        assert request.query_params.parameters["max_products"] == 5


class TestDetectIntent:
    def test_result_is_plain_camel_case(self, settings):
        sessions = FakeSessionsClient(response=make_response())
        client = DialogflowClient(settings, sessions_client=sessions)

        result = client.detect_intent("need a drill", "s-1")

        assert result.intent == "product.search"
        assert result.confidence == pytest.approx(0.5)
        assert result.parameters == {"tool": "drill"}
        assert result.response_messages[0]["responseType"] == "HANDLER_PROMPT"
        assert sessions.requests[0][1] == settings.timeout_sec

    def test_result_feeds_parser(self, settings):
        client = DialogflowClient(settings, sessions_client=FakeSessionsClient(response=make_response()))
        messages = client.detect_intent("need a drill", "s-1").response_messages

        assert extract_text(messages) == "Try these drills"
        products = extract_products(messages)
        assert [product.title for product in products] == ["Cordless Drill"]
        assert products[0].availability is False
        assert products[0].description == "18V cordless"

    def test_vendor_errors_propagate(self, settings):
        sessions = FakeSessionsClient(error=core_exceptions.ServiceUnavailable("down"))
        client = DialogflowClient(settings, sessions_client=sessions)
        with pytest.raises(core_exceptions.ServiceUnavailable):
            client.detect_intent("hello", "s-1")

    def test_empty_query_result(self, settings):
        response = dialogflowcx_v3.DetectIntentResponse()
        client = DialogflowClient(settings, sessions_client=FakeSessionsClient(response=response))
        result = client.detect_intent("hello", "s-1")
        assert result.response_messages == []
        assert result.intent is None
