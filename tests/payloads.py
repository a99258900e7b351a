"""Builders for Dialogflow response message payloads used across tests."""


def tagged_string(value):
    return {"kind": "stringValue", "stringValue": value}


def tagged_bool(value):
    return {"kind": "boolValue", "boolValue": value}


def tagged_list(*values):
    return {"kind": "listValue", "listValue": {"values": list(values)}}


def tagged_struct(**fields):
    return {"kind": "structValue", "structValue": {"fields": fields}}


def text_message(*lines):
    return {"responseType": "HANDLER_PROMPT", "text": {"text": list(lines)}}


def rich_message(*groups, wrapped=True):
    payload = {"richContent": list(groups)}
    return {
        "responseType": "HANDLER_PROMPT",
        "payload": {"fields": payload} if wrapped else payload,
    }


def info_item(title, **metadata):
    return {"type": "info", "metadata": dict(title=title, **metadata)}
