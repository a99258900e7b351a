"""Test doubles for the Dialogflow client."""

from storefront_assistant.dialogflow_client import DetectIntentResult


class FakeDialogflow:
    """Stands in for DialogflowClient in API tests."""

    def __init__(self, result=None, error=None):
        self.result = result or DetectIntentResult()
        self.error = error
        self.calls = []

    def detect_intent(self, message, session_id):
        self.calls.append((message, session_id))
        if self.error:
            raise self.error
        return self.result
