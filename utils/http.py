from flask import request

from services.exceptions import ValidationFailed


def json_payload():
    """Parsed JSON body; an empty body is an empty object."""
    if not request.get_data(cache=True):
        return {}
    data = request.get_json(force=True, silent=True)
    if data is None:
        raise ValidationFailed("Malformed JSON in request body")
    return data


def query_args() -> dict:
    return request.args.to_dict()
