"""Builders for Discord interaction responses and message components."""

from enum import IntEnum


class ResponseType(IntEnum):
    PONG = 1
    CHANNEL_MESSAGE_WITH_SOURCE = 4
    UPDATE_MESSAGE = 7
    MODAL = 9


class ComponentType(IntEnum):
    ACTION_ROW = 1
    BUTTON = 2
    TEXT_INPUT = 4


class ButtonStyle(IntEnum):
    PRIMARY = 1
    SECONDARY = 2
    LINK = 5


class TextInputStyle(IntEnum):
    SHORT = 1


EPHEMERAL = 1 << 6

FAILURE_BODY = {"message": "Something went wrong"}


def pong() -> dict:
    return {"type": ResponseType.PONG}


def message(content: str, *, components: list[dict] | None = None, ephemeral: bool = False) -> dict:
    """A new message posted in reply to the interaction."""
    data: dict = {"content": content}
    if ephemeral:
        data["flags"] = EPHEMERAL
    if components is not None:
        data["components"] = components
    return {"type": ResponseType.CHANNEL_MESSAGE_WITH_SOURCE, "data": data}


def update_message(content: str, *, components: list[dict] | None = None) -> dict:
    """Edit the message the interaction came from.

    Pass ``components=[]`` to remove its buttons; ``None`` leaves them as they are.
    """
    data: dict = {"content": content}
    if components is not None:
        data["components"] = components
    return {"type": ResponseType.UPDATE_MESSAGE, "data": data}


def modal(custom_id: str, title: str, *inputs: dict) -> dict:
    """A modal with one text input per action row."""
    return {
        "type": ResponseType.MODAL,
        "data": {
            "custom_id": custom_id,
            "title": title,
            "components": [action_row(text) for text in inputs],
        },
    }


def action_row(*components: dict) -> dict:
    return {"type": ComponentType.ACTION_ROW, "components": list(components)}


def text_input(
    custom_id: str,
    label: str,
    *,
    placeholder: str | None = None,
    min_length: int | None = None,
    max_length: int | None = None,
    required: bool = True,
) -> dict:
    component: dict = {
        "type": ComponentType.TEXT_INPUT,
        "custom_id": custom_id,
        "label": label,
        "style": TextInputStyle.SHORT,
        "required": required,
    }
    if placeholder is not None:
        component["placeholder"] = placeholder
    if min_length is not None:
        component["min_length"] = min_length
    if max_length is not None:
        component["max_length"] = max_length
    return component


def button(label: str, custom_id: str, style: ButtonStyle = ButtonStyle.PRIMARY) -> dict:
    return {"type": ComponentType.BUTTON, "style": style, "label": label, "custom_id": custom_id}


def link_button(label: str, url: str) -> dict:
    return {"type": ComponentType.BUTTON, "style": ButtonStyle.LINK, "label": label, "url": url}
