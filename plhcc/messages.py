"""Message template interpolation.

Templates use ``{{name}}`` placeholders. Placeholders without a value (missing
or empty) are left in the text so the gap is visible before sending.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass

PLACEHOLDER = re.compile(r"\{\{(\w+)\}\}")


@dataclass
class RenderedMessage:
    subject: str | None
    body: str
    missing: list[str]


def interpolate_template(template: str, variables: Mapping[str, str]) -> str:
    return PLACEHOLDER.sub(lambda m: variables.get(m.group(1)) or m.group(0), template)


def template_placeholders(template: str) -> list[str]:
    """Placeholder names in order of first appearance."""
    return list(dict.fromkeys(PLACEHOLDER.findall(template)))


def render_message(
    body_template: str, variables: Mapping[str, str], subject_template: str | None = None
) -> RenderedMessage:
    """Fill a subject/body pair and report the placeholders left unfilled."""
    placeholders = template_placeholders(f"{subject_template or ''}\n{body_template}")
    return RenderedMessage(
        subject=interpolate_template(subject_template, variables) if subject_template is not None else None,
        body=interpolate_template(body_template, variables),
        missing=[name for name in placeholders if not variables.get(name)],
    )
