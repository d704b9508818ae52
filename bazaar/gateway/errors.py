"""GraphQL error codes raised by the gateway."""
from graphql import GraphQLError

UNAUTHENTICATED = "UNAUTHENTICATED"
FORBIDDEN = "FORBIDDEN"
NOT_FOUND = "NOT_FOUND"
BAD_USER_INPUT = "BAD_USER_INPUT"
DOWNSTREAM_ERROR = "DOWNSTREAM_ERROR"

_STATUS_CODES = {
    400: BAD_USER_INPUT,
    401: UNAUTHENTICATED,
    403: FORBIDDEN,
    404: NOT_FOUND,
    409: BAD_USER_INPUT,
    422: BAD_USER_INPUT,
}


def gateway_error(message: str, code: str, **extensions) -> GraphQLError:
    return GraphQLError(message, extensions={"code": code, **extensions})


def code_for_status(status_code: int) -> str:
    return _STATUS_CODES.get(status_code, DOWNSTREAM_ERROR)
