"""
airwallex-cli — command-line client for the Airwallex payments API
Usage: py airwallex.py <command> [args...]

Verb-first shortcuts:
  list <resource>         - transfers, beneficiaries, cards, invoices, ...
  create <resource>       - transfer, beneficiary, card, webhook, ...
  get <id>                - any ID: tfr_..., ben_..., card_..., inv_...:item_...
  cancel <id>             - tfr_..., disp_..., sub_...

Global flags (anywhere on the line):
  --output, -o <fmt>      text (default), json, jsonl
  --query <path>          Filter structured output (.items[].id)
  --yes, -y               Skip confirmation prompts (alias: --force)
  --no-input              Never prompt
  --agent                 JSON output, no prompts
  --debug                 Log HTTP requests to stderr
  --version               Show version number
"""

from awx_cli.cli import main

if __name__ == "__main__":
    main()
