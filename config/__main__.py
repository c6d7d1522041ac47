"""Command line interface for testing configuration loading"""
from . import settings_conf
from pathlib import Path

SECRET_KEYS = {'jwt_secret', 'pinning_jwt', 'api_keys'}

def main():
    """Display loaded configuration"""
    print("\nSettings Configuration:")
    print("-" * 50)
    for key, value in settings_conf.items():
        if key in SECRET_KEYS and value:
            value = '********'
        print(f"{key}: {value}")

    # Save example configuration file
    examples_dir = Path("examples")
    examples_dir.mkdir(exist_ok=True)

    with open(examples_dir / "settings.conf.example", "w") as f:
        f.write("""[DEFAULT]
# memory:// keeps everything in process, otherwise a PostgreSQL/CockroachDB URL
db_url = postgresql://root@localhost:26257/catalog?sslmode=disable
# Comma separated list of accepted API keys
api_keys = local-dev-key
# Bearer token verification: shared secret or JWKS document URL
jwt_secret =
jwks_url =
jwt_algorithms = RS256
jwt_audience =
# Blob storage
aws_region = us-west-1
metadata_bucket = catalog-metadata
upload_bucket = catalog-uploads
# Content-addressed pinning service
pinning_url = https://api.pinata.cloud/pinning/pinFileToIPFS
pinning_jwt =
ipfs_gateway_url =
host = 0.0.0.0
port = 8000
""")

if __name__ == "__main__":
    main()
