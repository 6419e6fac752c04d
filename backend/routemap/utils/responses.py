from typing import Any


def success_response(data: Any, msg: str = "ok", code: int = 0) -> dict[str, Any]:
    """Wrap a payload in the API envelope."""
    return {"code": code, "msg": msg, "data": data}


def error_response(msg: str, code: int = 10001, data: Any = None) -> dict[str, Any]:
    return {"code": code, "msg": msg, "data": data}


def dump_document(model: Any) -> Any:
    """Serialize state-document models with their camelCase wire names."""

    if isinstance(model, list):
        return [dump_document(item) for item in model]
    return model.model_dump(mode="json", by_alias=True)
