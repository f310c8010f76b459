"""
Message template rendering.
"""

NAME_PLACEHOLDER = "{name}"
SCHEDULE_PLACEHOLDER = "{horario}"


def render_message(template: str, name: str, schedule_label: str) -> str:
    """Fill the first ``{name}`` and then the first ``{horario}`` in ``template``.

    Later repetitions of a placeholder are left untouched and missing
    placeholders are not an error. Nothing is escaped.
    """
    return template.replace(NAME_PLACEHOLDER, name, 1).replace(
        SCHEDULE_PLACEHOLDER, schedule_label, 1
    )
