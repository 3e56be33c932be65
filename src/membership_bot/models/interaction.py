"""Discord interaction payloads decoded into a tagged union.

Each inbound callback is decoded exactly once, at the HTTP boundary, into one
of the variants below. Handlers then dispatch on the variant type and only see
the fields that variant carries.
"""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter


class InteractionType:
    """Discord interaction ``type`` values handled here."""

    PING = 1
    APPLICATION_COMMAND = 2
    MESSAGE_COMPONENT = 3
    MODAL_SUBMIT = 5


class TextField(BaseModel):
    """One text input submitted in a modal."""

    custom_id: str
    value: str = ""


class PingInteraction(BaseModel):
    type: Literal[1]


class CommandInteraction(BaseModel):
    """A slash command. ``options`` maps option name to its string value."""

    type: Literal[2]
    name: str
    options: dict[str, str] = {}
    user_id: str | None = None


class ComponentInteraction(BaseModel):
    """A click on a button (or other message component)."""

    type: Literal[3]
    custom_id: str
    user_id: str | None = None


class ModalSubmitInteraction(BaseModel):
    """A submitted modal with its text inputs in display order."""

    type: Literal[5]
    custom_id: str
    fields: list[TextField] = []
    user_id: str | None = None

    def value(self, custom_id: str) -> str | None:
        """Return the value of the named text input, or None if absent."""
        for field in self.fields:
            if field.custom_id == custom_id:
                return field.value
        return None


class UnknownInteraction(BaseModel):
    """Any interaction type this service does not handle."""

    type: int


KnownInteraction = Annotated[
    Union[PingInteraction, CommandInteraction, ComponentInteraction, ModalSubmitInteraction],
    Field(discriminator="type"),
]
Interaction = Union[
    PingInteraction,
    CommandInteraction,
    ComponentInteraction,
    ModalSubmitInteraction,
    UnknownInteraction,
]

_known_adapter: TypeAdapter = TypeAdapter(KnownInteraction)
_KNOWN_TYPES = {
    InteractionType.PING,
    InteractionType.APPLICATION_COMMAND,
    InteractionType.MESSAGE_COMPONENT,
    InteractionType.MODAL_SUBMIT,
}


def decode_interaction(payload: dict) -> Interaction:
    """Flatten a raw Discord payload into its tagged-union variant.

    The invoking user is read from ``member.user`` (guild context) or ``user``
    (DM context). Modal text inputs are flattened out of their action rows.

    Raises:
        pydantic.ValidationError: A known interaction type is missing required
            fields.
    """
    kind = payload.get("type")
    if kind not in _KNOWN_TYPES:
        return UnknownInteraction(type=kind if isinstance(kind, int) else 0)

    data = payload.get("data") or {}
    flat: dict = {"type": kind, "user_id": _user_id(payload)}

    if kind == InteractionType.APPLICATION_COMMAND:
        flat["name"] = data.get("name")
        flat["options"] = {
            opt["name"]: str(opt.get("value", ""))
            for opt in data.get("options") or []
            if "name" in opt
        }
    elif kind == InteractionType.MESSAGE_COMPONENT:
        flat["custom_id"] = data.get("custom_id")
    elif kind == InteractionType.MODAL_SUBMIT:
        flat["custom_id"] = data.get("custom_id")
        flat["fields"] = [
            {"custom_id": component.get("custom_id", ""), "value": component.get("value") or ""}
            for row in data.get("components") or []
            for component in row.get("components") or []
        ]

    return _known_adapter.validate_python(flat)


def _user_id(payload: dict) -> str | None:
    member = payload.get("member") or {}
    user = member.get("user") or payload.get("user") or {}
    return user.get("id")
