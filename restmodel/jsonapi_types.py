from typing import Any, Dict, List, TypedDict, Union


class JSONAPIResourceIdentifier(TypedDict):
    id: str
    type: str


class JSONAPIResourceObject(JSONAPIResourceIdentifier):
    attributes: Dict[str, Any]


JSONAPIData = Union[JSONAPIResourceObject, List[JSONAPIResourceObject], None]


class JSONAPIErrorObject(TypedDict, total=False):
    status: str
    title: str
    code: str
    detail: str
    message: str
    source: Dict[str, Any]
    meta: Dict[str, Any]


class JSONAPIDocument(TypedDict, total=False):
    jsonapi: Dict[str, str]
    data: JSONAPIData
    meta: Dict[str, Any]
    errors: List[JSONAPIErrorObject]
