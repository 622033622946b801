# -*- coding: utf-8 -*-
#
# Response rendering: every generated route answers with a json:api document,
# errors included (also the framework 404/405 and request validation errors)
#
from http import HTTPStatus
from typing import Any, Dict, List, Optional

from fastapi.responses import JSONResponse

import restmodel
from .config import get_config
from .jsonapi_types import JSONAPIDocument, JSONAPIErrorObject


class JSONAPIResponse(JSONResponse):
    """
    JSON:API requires 'application/vnd.api+json', the media type is configurable as RESTMODEL.JSONAPI_MEDIA_TYPE
    """

    media_type = restmodel.RESTMODEL.JSONAPI_MEDIA_TYPE


def jsonapi_document(**members: Any) -> JSONAPIDocument:
    """
    :param members: top level members, eg. data=..., meta=...
    :return: document with the "jsonapi" version member
    """
    document: JSONAPIDocument = {"jsonapi": {"version": str(get_config("JSONAPI_VERSION"))}}
    document.update(members)  # type: ignore[typeddict-item]
    return document


def http_error_object(status_code: int, detail: Any) -> JSONAPIErrorObject:
    try:
        title = HTTPStatus(status_code).phrase
    except ValueError:
        title = "HTTP Error"
    detail_text = detail if isinstance(detail, str) else str(detail)
    return {"status": str(status_code), "title": title, "detail": detail_text, "message": detail_text}


def error_response(status_code: int, errors: List[JSONAPIErrorObject], headers: Optional[Dict[str, str]] = None) -> JSONAPIResponse:
    """
    :param errors: json:api error objects, at least one is sent
    """
    if not errors:
        errors = [http_error_object(status_code, "Request failed")]
    return JSONAPIResponse(status_code=status_code, content=jsonapi_document(errors=errors), headers=headers)
