"""
Option mapping: untyped caller options -> validated RenderConfiguration.

The accepted keys form a closed set grouped under ``parse``, ``render`` and
``extension``. Anything outside that set is rejected before rendering.
"""

from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, StrictStr, ValidationError

from marksmith.errors import InvalidOptionValueError, UnknownOptionError

# pydantic error type -> human readable kind used in InvalidOptionValueError
_EXPECTED_KINDS = {
    "bool_type": "boolean",
    "int_type": "integer",
    "greater_than_equal": "non-negative integer",
    "string_type": "string",
    "model_type": "mapping",
    "model_attributes_type": "mapping",
    "dict_type": "mapping",
}


class _OptionGroup(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class ParseOptions(_OptionGroup):
    """Options that change how the input is parsed."""
    smart: StrictBool = Field(default=False, description="Typographic quotes, dashes and ellipses")
    default_info_string: Optional[StrictStr] = Field(
        default=None, description="Language assumed for fenced code blocks without an info string"
    )


class RenderOptions(_OptionGroup):
    """Options that change how the document tree is written out as HTML."""
    hardbreaks: StrictBool = Field(default=False, description="Render soft line breaks as <br />")
    github_pre_lang: StrictBool = Field(default=False, description="Use <pre lang=...> for code block languages")
    width: StrictInt = Field(default=0, ge=0, description="Wrap column for CommonMark output; unused for HTML")
    unsafe: StrictBool = Field(default=False, description="Pass raw HTML and dangerous links through")
    escape: StrictBool = Field(default=False, description="Escape raw HTML instead of omitting it")


class ExtensionOptions(_OptionGroup):
    """Toggles for the extensions layered on top of CommonMark."""
    strikethrough: StrictBool = False
    tagfilter: StrictBool = False
    table: StrictBool = False
    autolink: StrictBool = False
    tasklist: StrictBool = False
    superscript: StrictBool = False
    footnotes: StrictBool = False
    description_lists: StrictBool = False
    header_ids: Optional[StrictStr] = Field(
        default=None, description="Prefix for generated heading ids; None disables ids"
    )
    front_matter_delimiter: Optional[StrictStr] = Field(
        default=None, description="Line that fences a leading front matter block to strip"
    )


class RenderConfiguration(BaseModel):
    """
    Fully validated renderer configuration.

    Built fresh for every conversion call and discarded afterwards.
    """
    model_config = ConfigDict(extra="forbid", frozen=True)

    parse: ParseOptions = Field(default_factory=ParseOptions)
    render: RenderOptions = Field(default_factory=RenderOptions)
    extension: ExtensionOptions = Field(default_factory=ExtensionOptions)


def _plain_keys(raw: Mapping, prefix: str = "") -> Dict[str, Any]:
    """Copy ``raw`` into a dict, rejecting keys that are not strings."""
    plain: Dict[str, Any] = {}
    for key, value in raw.items():
        if not isinstance(key, str):
            raise UnknownOptionError(f"{prefix}{key!r}")
        if not prefix and isinstance(value, Mapping):
            value = _plain_keys(value, prefix=f"{key}.")
        plain[key] = value
    return plain


def _dotted(loc) -> str:
    return ".".join(str(part) for part in loc)


def resolve_options(raw: Optional[Mapping] = None) -> RenderConfiguration:
    """
    Turn a caller-supplied options mapping into a RenderConfiguration.

    Args:
        raw: Nested mapping such as ``{"extension": {"table": True}}``, or None
             for the defaults.

    Returns:
        The validated configuration.

    Raises:
        UnknownOptionError: A key outside the supported set was given. This
            takes precedence over value errors elsewhere in the mapping.
        InvalidOptionValueError: A known key carries a value of the wrong shape.
    """
    if raw is None:
        return RenderConfiguration()
    if not isinstance(raw, Mapping):
        raise InvalidOptionValueError("options", "mapping")

    try:
        return RenderConfiguration.model_validate(_plain_keys(raw))
    except ValidationError as e:
        errors = e.errors()
        unknown = [err for err in errors if err["type"] == "extra_forbidden"]
        if unknown:
            raise UnknownOptionError(_dotted(unknown[0]["loc"])) from None
        first = errors[0]
        kind = _EXPECTED_KINDS.get(first["type"], "valid value")
        raise InvalidOptionValueError(_dotted(first["loc"]), kind) from None
