import os
import sys
from typing import Dict

import yaml

from creatable.outputs.template_renderer import write_outputs
from creatable.router import route
from creatable.utils.exceptions import UsageError


class ConfigExecutor:
    """
    Executes the creatable pipeline using a YAML run configuration.

    Example:
        template: ddl.sql.j2
        definitions: [tables.yaml]
        multiple: false
        output_dir: out
        output_file: schema.sql
        properties: {dialect: mysql}
    """

    def __init__(self, config_path: str):
        self.config_path = config_path
        self.config = self._load_config()

    # ------------------------------------------
    # Load YAML
    # ------------------------------------------
    def _load_config(self) -> Dict:
        if not os.path.exists(self.config_path):
            raise FileNotFoundError(f"Config file not found: {self.config_path}")

        with open(self.config_path, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f) or {}

        if not isinstance(config, dict):
            raise UsageError(f"Config must be a mapping: {self.config_path}")
        return config

    # ------------------------------------------
    # Relative paths follow the config file
    # ------------------------------------------
    def _resolve(self, path: str) -> str:
        if os.path.isabs(path):
            return path
        return os.path.join(os.path.dirname(os.path.abspath(self.config_path)), path)

    # ------------------------------------------
    # Build Router Payload
    # ------------------------------------------
    def _build_payload(self) -> Dict:
        cfg = self.config

        if not cfg.get("template"):
            raise UsageError("template is not specified.")

        definitions = cfg.get("definitions") or []
        if isinstance(definitions, str):
            definitions = [definitions]
        if not definitions:
            raise UsageError("definitions are not specified.")

        template = cfg["template"]
        if os.path.isfile(self._resolve(template)):
            template = self._resolve(template)

        output_dir = cfg.get("output_dir")
        return {
            "template": template,
            "definition_paths": [self._resolve(p) for p in definitions],
            "properties": cfg.get("properties") or {},
            "multiple": cfg.get("multiple", False) is True,
            "output_dir": self._resolve(output_dir) if output_dir else None,
        }

    # ------------------------------------------
    # Execute Pipeline
    # ------------------------------------------
    def execute(self) -> Dict:
        payload = self._build_payload()
        result = route(payload)
        self._save_outputs(result, payload)
        return result

    # ------------------------------------------
    # Save Outputs
    # ------------------------------------------
    def _save_outputs(self, result: Dict, payload: Dict):
        if "outputs" in result:
            result["written"] = write_outputs(result["outputs"])
            return

        output_file = self.config.get("output_file")
        if not output_file:
            return

        if payload.get("output_dir"):
            path = os.path.join(payload["output_dir"], output_file)
        else:
            path = self._resolve(output_file)
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(result["output"])
        result["written"] = [path]


def main():
    if len(sys.argv) != 2:
        print("Usage: creatable-run <config.yaml>")
        sys.exit(1)

    executor = ConfigExecutor(sys.argv[1])
    result = executor.execute()

    print("\n=== Execution Completed ===")
    print(f"Tables: {', '.join(result.get('tables', []))}")
    for path in result.get("written", []):
        print(f"Written: {path}")
    if "output" in result and not result.get("written"):
        print()
        print(result["output"])


if __name__ == "__main__":
    main()
