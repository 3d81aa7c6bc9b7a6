from rest_framework.response import Response
from rest_framework import status


class BaseResponseMixin:
    """
    Mixin to standardize API responses.

    All responses have the format:
    {
        "status": "success" | "error",
        "status_code": int,
        "message": str,
        "data": Any | None
    }
    """

    def success_response(
        self, data=None, message="Success", status_code=status.HTTP_200_OK
    ):
        """Send a success response"""
        response_data = {
            "status": "success",
            "status_code": status_code,
            "message": message,
            "data": data,
        }
        return Response(response_data, status=status_code)

    def error_response(
        self,
        message="An error occurred",
        status_code=status.HTTP_400_BAD_REQUEST,
        data=None,
    ):
        """Send an error response"""
        response_data = {
            "status": "error",
            "message": message,
            "data": data,
            "status_code": status_code,
        }
        return Response(response_data, status=status_code)
