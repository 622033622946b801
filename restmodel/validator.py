"""Schema validation of model attributes.

:func:`validate` checks a data mapping against a :class:`~restmodel.schema.Schema`:
required properties must be present, declared defaults are backfilled and
non-null values must match the declared property type. Keys that are not
declared in the schema pass through untouched.

The input is never modified, the validated attributes are returned as a new dict.
"""

import copy
import datetime
import math
from typing import Any, Callable, Dict, Mapping

import restmodel
from .errors import StructuralError, ValidationError
from .schema import DEFINITION_ERROR, PropertyType, Schema

# Formats accepted for string dates besides ISO 8601
DATE_FORMATS = ("%Y-%m-%d %H:%M:%S.%f", "%Y-%m-%d %H:%M:%S", "%Y-%m-%d")


class TypeCheckError(ValueError):
    """Raised by a type checker, wrapped into a ValidationError naming the property"""


def _type_name(value: Any) -> str:
    return type(value).__name__


def _check_string(value: Any) -> None:
    if not isinstance(value, str):
        raise TypeCheckError(f"expected a string, got {_type_name(value)}")


def _check_number(value: Any) -> None:
    # bool is a subclass of int
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeCheckError(f"expected a number, got {_type_name(value)}")
    if isinstance(value, float) and not math.isfinite(value):
        raise TypeCheckError(f"expected a finite number, got {value!r}")


def _check_boolean(value: Any) -> None:
    if not isinstance(value, bool):
        raise TypeCheckError(f"expected a boolean, got {_type_name(value)}")


def parse_date(value: Any) -> datetime.date:
    """
    Parse a date-like value
    :param value: date or datetime object, date string or POSIX timestamp
    :return: the parsed date(time)
    :raises TypeCheckError: if the value isn't a valid date
    """
    if isinstance(value, (datetime.date, datetime.datetime)):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return datetime.datetime.fromtimestamp(value, tz=datetime.timezone.utc)
        except (OverflowError, OSError, ValueError) as exc:
            raise TypeCheckError(f"invalid date timestamp {value!r}") from exc
    if not isinstance(value, str):
        raise TypeCheckError(f"expected a date, got {_type_name(value)}")

    date_str = value.strip()
    if date_str.endswith("Z"):
        date_str = date_str[:-1] + "+00:00"
    try:
        return datetime.datetime.fromisoformat(date_str)
    except ValueError:
        pass
    for fmt in DATE_FORMATS:
        try:
            return datetime.datetime.strptime(date_str, fmt)
        except ValueError:
            continue
    raise TypeCheckError(f"invalid date {value!r}")


def _check_date(value: Any) -> None:
    parse_date(value)


TYPE_CHECKERS: Dict[PropertyType, Callable[[Any], None]] = {
    PropertyType.STRING: _check_string,
    PropertyType.NUMBER: _check_number,
    PropertyType.BOOLEAN: _check_boolean,
    PropertyType.DATE: _check_date,
}


def check_type(type_name: str, value: Any) -> None:
    """
    Check a single non-null value against a declared property type
    :param type_name: declared type, one of the PropertyType values
    :param value: value to check
    :raises TypeCheckError: if the value doesn't match or the type is unknown
    """
    try:
        prop_type = PropertyType(type_name)
    except ValueError:
        raise TypeCheckError(f'unknown type "{type_name}"') from None
    TYPE_CHECKERS[prop_type](value)


def _resolve_schema(schema: Any) -> Schema:
    if isinstance(schema, Schema):
        return schema
    if not isinstance(schema, Mapping) or not isinstance(schema.get("properties"), Mapping):
        raise StructuralError('Invalid schema: a "properties" mapping is required', DEFINITION_ERROR)
    return Schema.from_dict(schema)


def validate(data: Any, schema: Any, apply_defaults: bool = True) -> Dict[str, Any]:
    """
    Validate `data` against the `schema` properties
    :param data: attribute mapping
    :param schema: Schema or schema mapping
    :param apply_defaults: backfill declared defaults for missing or null values
    :return: new dict with the data and the applied defaults
    :raises StructuralError: data isn't a mapping (400) or the schema has no properties (500)
    :raises ValidationError: a property is missing or has an invalid value
    """
    if not isinstance(data, Mapping):
        raise StructuralError(f"Invalid data: expected an object, got {_type_name(data)}")
    schema = _resolve_schema(schema)

    result = dict(data)
    for key, prop in schema.properties.items():
        if prop.required and key not in result:
            raise ValidationError(f'Property "{key}" is required.', key)

        value = result.get(key)
        if value is None and apply_defaults and prop.has_default:
            value = copy.deepcopy(prop.default)
            result[key] = value
            restmodel.log.debug(f'Applied default for "{key}"')

        if prop.type is None or value is None:
            continue
        try:
            check_type(prop.type, value)
        except TypeCheckError as exc:
            raise ValidationError(f'Property "{key}": {exc}', key) from exc

    return result
