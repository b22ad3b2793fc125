"""Script to generate tenant_map.py and RELATIONSHIPS.md for a schema file."""
import sys
from pathlib import Path
from tenantflow.core.config import settings
from tenantflow.core.errors import TenantFlowError
from tenantflow.core.logging import configure_logging
from tenantflow.generators.tenant_gen.generator import generate_tenant_artifacts

configure_logging(settings.log_level)

schema_path = Path(sys.argv[1]) if len(sys.argv) > 1 else (Path(settings.schema_path) if settings.schema_path else None)
if schema_path is None:
    print("Usage: python scripts/generate_tenant_artifacts.py <schema.json|schema.yaml> [out_dir]")
    sys.exit(2)

out_dir = Path(sys.argv[2]) if len(sys.argv) > 2 else Path(settings.output_dir)

try:
    files = generate_tenant_artifacts(schema_path, out_dir)
except TenantFlowError as e:
    print(f"[ERROR] {e}")
    sys.exit(1)

print(f"[OK] Generated {len(files)} files in {out_dir}")
for f in files:
    print(f"  - {f.path}")
