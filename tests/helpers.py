import json
from unittest.mock import MagicMock


def make_response(status_code=200, payload=None):
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = payload if payload is not None else {}
    resp.text = json.dumps(payload) if payload is not None else ""
    return resp


def weaviate_payload(records, collection="Filip"):
    return {"data": {"Get": {collection: records}}}


def weaviate_record(record_id, reply, distance, generated=None, **props):
    additional = {"id": record_id, "distance": distance}
    if generated is not None:
        additional["generate"] = {"groupedResult": generated, "error": None}
    record = {"my_reply": reply, "category": "Having question or objection", "_additional": additional}
    record.update(props)
    return record
