"""Path parameter converters for action patterns like ``{id:int}``.

Converters only constrain what a segment matches. Handlers receive the
captured string, converted by the parameter's annotation.
"""

# Regex pattern for each supported converter
CONVERTERS: dict[str, str] = {
    "str": r"[^/]+",
    "int": r"\d+",
    "float": r"\d+(?:\.\d+)?",
    "path": r".+",
}
