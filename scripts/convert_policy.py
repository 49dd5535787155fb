#!/usr/bin/env python3
# Copyright (c) 2025 OptimNow - Jean Latiere. All Rights Reserved.
# Licensed under the Proprietary Software License.
# See LICENSE file in the project root for full license information.

"""
Convert tag policies between AWS, GCP, Azure and the MCP (canonical) format.

Usage:
    python scripts/convert_policy.py <input_file> --from aws [--to mcp] [-o output_file]
    python scripts/convert_policy.py policy.json --from mcp --to azure
    python scripts/convert_policy.py policy.json --from mcp --to markdown

    --from: aws, gcp, azure or mcp
    --to:   mcp (default), aws, gcp, azure, markdown or yaml
            A provider target requires an MCP input whose cloud_provider matches.

Examples:
    python scripts/convert_policy.py aws_tag_policy.json --from aws
    python scripts/convert_policy.py aws_tag_policy.json --from aws -o policies/my_policy.json
"""

import argparse
import json
import sys
from pathlib import Path

from policy_generator.converters import PolicyImportError
from policy_generator.services import (
    PolicyService,
    PolicyValidationError,
    generate_markdown,
    policy_to_json,
    policy_to_yaml,
    validate_policy,
)

SOURCES = ("aws", "gcp", "azure", "mcp")
TARGETS = ("mcp", "aws", "gcp", "azure", "markdown", "yaml")


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Convert tag policies between provider formats",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("input_file", type=Path, help="Policy document to convert")
    parser.add_argument("--from", dest="source", choices=SOURCES, required=True)
    parser.add_argument("--to", dest="target", choices=TARGETS, default="mcp")
    parser.add_argument("-o", "--output", type=Path, help="Write here instead of stdout")
    args = parser.parse_args()

    if not args.input_file.exists():
        print(f"Error: Input file not found: {args.input_file}", file=sys.stderr)
        return 1

    text = args.input_file.read_text(encoding="utf-8")
    service = PolicyService()

    try:
        if args.source == "mcp":
            service.load_policy_json(text, source=str(args.input_file))
        else:
            service.import_policy(args.source, text)
    except (PolicyImportError, PolicyValidationError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    policy = service.policy
    warnings: list[str] = []

    if args.target == "mcp":
        output = policy_to_json(policy)
    elif args.target == "markdown":
        output = generate_markdown(policy)
    elif args.target == "yaml":
        output = policy_to_yaml(policy)
    else:
        if policy.cloud_provider.value != args.target:
            print(
                f"Error: Policy targets {policy.cloud_provider.value}; "
                f"cannot export it as {args.target}",
                file=sys.stderr,
            )
            return 1
        export = service.export_policy()
        output = json.dumps(export.document, indent=2)
        warnings = export.warnings

    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(output, encoding="utf-8")
        print(f"Converted {args.source} -> {args.target}: {args.output}", file=sys.stderr)
        print(f"  - {len(policy.required_tags)} required tags", file=sys.stderr)
        print(f"  - {len(policy.optional_tags)} optional tags", file=sys.stderr)
    else:
        print(output)

    for warning in warnings:
        print(f"WARNING: {warning}", file=sys.stderr)
    for error in validate_policy(policy):
        print(f"VALIDATION: {error}", file=sys.stderr)

    return 0


if __name__ == "__main__":
    sys.exit(main())
