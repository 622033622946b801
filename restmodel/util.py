#
from typing import List


def pluralize(name: str) -> str:
    """
    Naive suffix pluralization used for the collection url segments, eg. "test" => "tests"
    Irregular plurals are not handled
    """
    return f"{name}s"


def with_slash_parity(path: str) -> List[str]:
    """
    :param path: route path
    :return: the path without and with a trailing slash
    """
    path = path.rstrip("/")
    return [path, path + "/"]
