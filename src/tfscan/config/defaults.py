"""Starter .tfscan.toml template."""

DEFAULT_TOML = """\
# tfscan configuration
version = "1.0"

[tools]
trivy_path = "./bin/trivy"
parser_path = "./bin/trivy-parser"
custom_policies = "./custom-policies"
check_namespace = "user"
# timeout = 0             # seconds per external tool run; 0 = wait forever

[paths]
storage = "./storage"            # downloaded files: storage/<project id>/mr-<iid>/
scan_results = "./scan-results"  # raw + split results

[report]
naming = "auto"           # auto | prefix (builtin-/custom-) | bracket ([TV]/[KB])
source_extension = ".tf"

[output]
format = "markdown"       # markdown | json | terminal
"""
