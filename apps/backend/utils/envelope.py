from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def ok(data=None, status: int = 200):
    return JSONResponse(
        status_code=status,
        content={
            "data": jsonable_encoder(data),
            "error": None,
        },
    )


def error(message: str, code: str = "error", status: int = 400):
    return JSONResponse(
        status_code=status,
        content={
            "data": None,
            "error": message,
            "code": code,
        },
    )
