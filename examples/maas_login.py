import os
import secrets
import sys

# Add src to path for running directly
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "../src")))

from coreason_maas import CoreasonMaasError, MaasClient, MaasClientConfig


def main() -> None:
    """
    Walks through the relying-party login flow against the MAAS server.
    Reads COREASON_MAAS_CLIENT_ID, COREASON_MAAS_CLIENT_SECRET and COREASON_MAAS_REDIRECT_URI from the environment.
    """
    config = MaasClientConfig()  # type: ignore[call-arg]

    try:
        with MaasClient(config) as client:
            state = secrets.token_urlsafe(16)
            print(f">>> Open this URL in a browser:\n{client.get_auth_request_url(state)}")

            code = input(">>> Paste the 'code' parameter from the redirect: ").strip()
            result = client.validate_auth(code)
            print(f">>> Authenticated subject: {result.claims.get('sub')}")

            user = client.get_user_info(result.access_token)
            print(f">>> User info: {user.to_json()}")
    except CoreasonMaasError as e:
        print(f">>> Login failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
