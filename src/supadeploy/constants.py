"""Fixed locations and field layouts of the supabase-on-do checkout."""

REPO_URL = "https://github.com/digitalocean/supabase-on-do.git"
REPO_DIR = "supabase-on-do"

PACKER_DIR = "packer"
TERRAFORM_DIR = "terraform"
PACKER_VARS_FILE = "supabase.auto.pkrvars.hcl"
TERRAFORM_VARS_FILE = "terraform.tfvars"

MANIFEST_DIR = ".supadeploy"
MANIFEST_FILE = "run-manifest.json"

REQUIRED_TOOLS = ("git", "doctl", "packer", "terraform")
MIN_TOOL_VERSIONS = {
    "packer": "1.7.0",
}

PACKER_VAR_FIELDS = ("do_api_token", "do_region", "do_image", "do_size", "ssh_username")
TERRAFORM_VAR_FIELDS = (
    "do_api_token",
    "do_spaces_access_key",
    "do_spaces_secret_key",
    "do_region",
    "domain_name",
    "sendgrid_api_key",
)
TERRAFORM_OPTIONAL_FIELDS = ("tf_cloud_token",)

TERRAFORM_OUTPUTS = ("htpasswd", "psql_pass", "jwt", "jwt_anon", "jwt_service_role")

STUDIO_SUBDOMAIN = "supabase"
STUDIO_USERNAME = "supabase"
