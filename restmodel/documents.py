# -*- coding: utf-8 -*-

"""Pydantic models of the request and response envelopes.

The request models are used to parse untrusted bodies, the attributes
themselves are checked by the schema validator.
"""

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr


class PermissiveModel(BaseModel):
    model_config = ConfigDict(extra="allow")


class JsonApiVersion(PermissiveModel):
    version: str = "1.0"


class JsonApiErrorObject(PermissiveModel):
    status: Optional[str] = None
    title: Optional[str] = None
    code: Optional[str] = None
    detail: Optional[str] = None
    message: str


class JsonApiErrorDocument(PermissiveModel):
    jsonapi: Optional[JsonApiVersion] = None
    errors: List[JsonApiErrorObject] = Field(min_length=1)


class ResourceData(PermissiveModel):
    """data member of a POST or PATCH body"""

    type: StrictStr
    id: Optional[Union[StrictStr, StrictInt]] = None
    attributes: Dict[str, Any] = Field(default_factory=dict)


class ResourceDocument(PermissiveModel):
    data: ResourceData


class ResourceObject(PermissiveModel):
    type: str
    id: str
    attributes: Dict[str, Any] = Field(default_factory=dict)


class SingleDocument(PermissiveModel):
    jsonapi: Optional[JsonApiVersion] = None
    data: ResourceObject


class CollectionDocument(PermissiveModel):
    jsonapi: Optional[JsonApiVersion] = None
    data: List[ResourceObject] = Field(default_factory=list)
    meta: Optional[Dict[str, Any]] = None


def example_document(type_: str, attributes: Dict[str, Any], id_: Optional[str] = None) -> Dict[str, Any]:
    data: Dict[str, Any] = {"type": type_, "attributes": attributes}
    if id_ is not None:
        data["id"] = id_
    return {"data": data}
