from google.cloud import secretmanager
import os
import logging
from concurrent.futures import ThreadPoolExecutor

logger = logging.getLogger(__name__)

# env var -> secret suffix; the secret id is TF_<ENV>_<suffix>
SECRET_MAP = {
    "GEMINI_API_KEY": "GEMINI_API_KEY",
    "GOOGLE_CLIENT_EMAIL": "DOCAI_CLIENT_EMAIL",
    "GOOGLE_CLIENT_SECRET": "DOCAI_PRIVATE_KEY",
}

# checked after loading; missing values only disable the matching pipeline step
EXPECTED_VARS = [
    "GEMINI_API_KEY",
    "GCP_PROJECT_ID",
    "DOCAI_PROCESSOR_ID",
    "DOCAI_LOCATION",
]


def access_secret_version(secret_id, project_id, version_id="latest"):
    client = secretmanager.SecretManagerServiceClient()
    name = f"projects/{project_id}/secrets/{secret_id}/versions/{version_id}"
    response = client.access_secret_version(name=name)
    return response.payload.data.decode('UTF-8')


def init_secrets():
    env = os.getenv("ENV", "DEV")
    logger.debug(f"Initializing secrets for environment: {env}")
    if env in ("PROD", "STG"):
        project_id = os.getenv("SECRET_PROJECT") or os.getenv("GCP_PROJECT_ID")
        if not project_id:
            raise EnvironmentError("SECRET_PROJECT must be set to load secrets in PROD/STG")

        # Load secrets concurrently
        futures = {}
        with ThreadPoolExecutor() as executor:
            for env_var, secret_suffix in SECRET_MAP.items():
                secret_id = f"TF_{env}_{secret_suffix}"
                futures[env_var] = (secret_id, executor.submit(
                    access_secret_version,
                    secret_id=secret_id,
                    project_id=project_id,
                    version_id="latest"
                ))

        for env_var, (secret_id, future) in futures.items():
            try:
                os.environ[env_var] = future.result()
                logger.debug(f"Set {env_var} from secret {secret_id}")
            except Exception as e:
                logger.error(f"Failed to load secret for {env_var}: {e}")
                raise
    else:
        # For DEV, set environment variables directly from the local .env file
        logger.debug("Loading secrets from local .env file")
        from dotenv import load_dotenv
        load_dotenv()

    missing = [var for var in EXPECTED_VARS if not os.getenv(var) and not os.getenv(f"NEXT_PUBLIC_{var}")]
    if missing:
        logger.warning(f"Missing environment variables, dependent endpoints will fail: {', '.join(missing)}")
    else:
        logger.info("Successfully initialized all secrets")
