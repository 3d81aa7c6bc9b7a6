def extract_validation_error_message(error):
    """
    Extract a clean error message from Django or DRF ValidationError
    """
    if hasattr(error, "message_dict") and error.message_dict:
        # Django ValidationError with field errors
        first_field = next(iter(error.message_dict))
        return str(error.message_dict[first_field][0])
    elif hasattr(error, "detail"):
        # DRF ValidationError
        detail = error.detail
        if isinstance(detail, dict) and detail:
            first_field = next(iter(detail))
            first_error = detail[first_field]
            if isinstance(first_error, list) and first_error:
                first_error = first_error[0]
            if first_field == "non_field_errors":
                return str(first_error)
            return f"{first_field}: {first_error}"
        elif isinstance(detail, list) and detail:
            return str(detail[0])
        return str(detail)
    elif hasattr(error, "messages") and error.messages:
        # Django ValidationError with messages
        return str(error.messages[0])
    return str(error)
