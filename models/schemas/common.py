from marshmallow import validate

# lowercase words joined by single hyphens: "green-tea", "mint2"
SLUG_VALIDATOR = validate.Regexp(
    r"^[a-z0-9]+(?:-[a-z0-9]+)*$",
    error="Slug may only contain lowercase letters, digits and single hyphens.",
)


def strip_fields(data, *names):
    """Return a copy of data with the named string values stripped."""
    if not isinstance(data, dict):
        return data
    out = dict(data)
    for name in names:
        if isinstance(out.get(name), str):
            out[name] = out[name].strip()
    return out
