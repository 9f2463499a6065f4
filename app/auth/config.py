from pydantic_settings import BaseSettings, SettingsConfigDict


class AuthConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="AUTH_", env_file=".env", extra="ignore")

    secret: str = "restaurant-super-secret-key"  # 🔐 Replace with something strong and secure
    jwt_lifetime_seconds: int = 3600
    jwt_algorithm: str = "HS256"
    jwt_audience: str = "fastapi-users:auth"

    refresh_secret: str = "restaurant-refresh-secret-key"
    refresh_lifetime_seconds: int = 7 * 24 * 60 * 60
    refresh_audience: str = "restaurant:refresh"

    access_cookie_name: str = "accessToken"
    refresh_cookie_name: str = "refreshToken"


auth_config = AuthConfig()
