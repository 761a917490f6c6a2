# common/utils/global_functions.py
from typing import Any, Dict, Union

def resPayloadData(
    code: int,
    error: bool,
    message: str,
    total_count: int | None = None,
    data: Union[dict, list, str, None] = None,
    error_kind: str | None = None,
) -> Dict[str, Any]:
    """
    Constructs a standardized response payload.

    Args:
        code (int): The HTTP status code.
        error (bool): Indicates if the response represents an error.
        message (str): A message associated with the response.
        total_count (int | None, optional): The total count of items, if applicable.
        data (Union[dict, list, str, None], optional): The response data.
        error_kind (str | None, optional): Machine-checkable failure kind, only used when error is True.

    Returns:
        Dict[str, Any]: A dictionary containing the structured response.

    If error is True, the provided message will be assigned to errorMessage and the message field will be set to None.
    Conversely, if error is False, message is assigned to the message field and errorMessage is None.
    """
    response_data = {
        "statusCode": code,
        "message": None if error else message or None,
        "errorMessage": message if error else None,
        "errorKind": error_kind if error else None,
        "totalCount": total_count,
        "data": data
    }

    # Special handling when data is an object with only one key 'message'
    if data and isinstance(data, dict) and 'message' in data and len(data) == 1:
        response_data = {
            "statusCode": code,
            "message": data.get('message'),
            "errorMessage": None,
            "errorKind": None,
            "totalCount": None,
            "data": None
        }

    return response_data
