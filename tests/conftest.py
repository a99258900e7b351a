"""Shared test fixtures."""

import pytest

from storefront_assistant.config import Settings

from fakes import FakeDialogflow
from payloads import (
    info_item,
    rich_message,
    tagged_bool,
    tagged_list,
    tagged_string,
    tagged_struct,
    text_message,
)


@pytest.fixture
def settings():
    """Settings pointing at a fake agent."""
    return Settings(
        project_id="demo-project",
        location="global",
        agent_id="agent-123",
        language_code="en",
        max_products=5,
        timeout_sec=10.0,
        include_raw_response=True,
    )


@pytest.fixture
def tagged_product_item():
    """One product item in the tagged protobuf JSON form."""
    return tagged_struct(
        type=tagged_string("info"),
        title=tagged_string("Item title"),
        subtitle=tagged_string("Galvanised steel, 75mm"),
        actionLink=tagged_string("https://shop.example.com/p/nails"),
        metadata=tagged_struct(
            title=tagged_string("Jumbo Nails 75mm"),
            image_url=tagged_string("https://cdn.example.com/nails.jpg"),
            availability=tagged_bool(False),
            unit_of_measure=tagged_string("box"),
            keywords=tagged_list(tagged_string("nails"), tagged_string("fixings")),
            categories=tagged_list(
                tagged_list(
                    tagged_struct(name=tagged_string("Hardware"), id=tagged_string("hw")),
                    tagged_struct(name=tagged_string("Nails"), id=tagged_string("hw-nails")),
                )
            ),
        ),
    )


@pytest.fixture
def mixed_reply():
    """Text, chips and two products spread over two rich content messages."""
    return [
        {"responseType": "ENTRY_PROMPT", "text": {"text": ["Welcome back"]}},
        text_message("Here are some hammers:\n- Claw\n- Sledge", "second line"),
        rich_message(
            [info_item("Claw Hammer"), {"type": "chips", "options": [{"text": "More"}]}],
            [{"type": "image", "rawUrl": "https://cdn.example.com/banner.png"}],
        ),
        rich_message([info_item("Sledge Hammer", availability=False)], wrapped=False),
    ]


@pytest.fixture
def fake_dialogflow():
    return FakeDialogflow()
