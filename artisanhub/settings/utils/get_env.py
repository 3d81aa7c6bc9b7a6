import os
import dj_database_url


class EnvHandler:
    """
    Fetches environment variables and casts them to the requested type.
    """

    def get(self, variable_name, default=None, cast_to=str):
        """
        Gets an environment variable with an optional default and type casting.
        A variable with neither a value nor a default is treated as required.
        """
        value = os.environ.get(variable_name, default)

        if value is None:
            raise ValueError(
                f"Required setting '{variable_name}' is not set in the environment"
            )

        if cast_to == bool:
            return str(value).lower() in ["true", "1", "t", "yes"]

        try:
            return cast_to(value)
        except (ValueError, TypeError):
            raise TypeError(
                f"Could not cast environment variable '{variable_name}' to {cast_to.__name__}."
            )

    def list(self, variable_name, default=None, separator=","):
        """Comma separated variable -> list of stripped, non-empty items."""
        raw = self.get(variable_name, default=default, cast_to=str)
        return [item.strip() for item in raw.split(separator) if item.strip()]

    def db(self, variable_name="DATABASE_URL", default=None):
        """
        Reads a database URL and parses it into a Django DATABASES entry.
        """
        db_url_string = self.get(variable_name, default=default, cast_to=str)

        return dj_database_url.parse(
            db_url_string,
            conn_max_age=600,
            conn_health_checks=True,
        )


env = EnvHandler()
