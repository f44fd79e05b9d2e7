"""Pre-deployment checks of the dealership environment and config files."""

import argparse
import datetime
import json
import logging
import os
import pathlib
import re
import sys
from typing import Any, Mapping

Path = pathlib.Path

ENV_CATEGORIES = {
    "Dealer Info": [
        "DEALER_NAME", "DEALER_ADDRESS", "DEALER_PHONE", "DEALER_WEBSITE"
    ],
    "Phone Numbers": [
        "MAIN_NUMBER", "SALES_NUMBER", "SERVICE_NUMBER", "PARTS_NUMBER"
    ],
    "SIP Configuration": [
        "SIP_PROVIDER", "SIP_INGRESS_HOST", "SIP_EGRESS_HOST"
    ],
    "Voice Configuration": ["VOICE_ID_EN"],
    "CRM Integration": ["CRM_TYPE", "ADF_INBOX_EMAIL"],
}
PHONE_VARS = ("MAIN_NUMBER", "SALES_NUMBER", "SERVICE_NUMBER", "PARTS_NUMBER")
REQUIRED_AGENTS = (
    "agent.reception",
    "agent.sales",
    "agent.service",
    "agent.parts",
    "agent.after_hours",
)
CRITICAL_TOOLS = (
    "createLead", "scheduleService", "getInventory", "sendSMS", "transfer"
)
BUSINESS_HOURS_VARS = ("HOURS_SALES", "HOURS_SERVICE", "HOURS_PARTS")
COMPLIANCE_SCRIPTS = (
    "call_opening", "sms_opt_in_script", "dnc_phrase", "payment_rule"
)

_PHONE_RE = re.compile(r"^\d{10}$")
_ENDPOINT_VAR_RE = re.compile(r"\{\{([A-Z_]+)\}\}")


class ConfigValidator:
  """Collects passed, failed and warning checks for one deployment."""

  def __init__(self, env: Mapping[str, str], config_dir: Path):
    self.env = env
    self.config_dir = Path(config_dir)
    self.results: dict[str, list[str]] = {
        "passed": [],
        "failed": [],
        "warnings": [],
    }

  def _passed(self, message: str):
    logging.info("  PASS %s", message)
    self.results["passed"].append(message)

  def _failed(self, message: str):
    logging.error("  FAIL %s", message)
    self.results["failed"].append(message)

  def _warning(self, message: str):
    logging.warning("  WARN %s", message)
    self.results["warnings"].append(message)

  def _load_json(self, name: str) -> dict[str, Any] | None:
    path = self.config_dir / name
    try:
      return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
      self._failed(f"{name} not found in {self.config_dir}")
    except json.JSONDecodeError as e:
      self._failed(f"{name} is not valid JSON: {e}")
    return None

  def validate(self) -> dict[str, list[str]]:
    """Runs every check and returns the collected results."""
    self.validate_environment_variables()
    self.validate_phone_numbers()
    self.validate_agent_configuration()
    self.validate_tool_endpoints()
    self.validate_business_hours()
    self.validate_compliance()
    self.validate_integrations()
    return self.results

  def validate_environment_variables(self):
    logging.info("Validating environment variables")
    for category, names in ENV_CATEGORIES.items():
      logging.info(" %s:", category)
      for name in names:
        if self.env.get(name):
          self._passed(f"{name} configured")
        else:
          self._failed(f"Missing: {name}")

  def validate_phone_numbers(self):
    logging.info("Validating phone numbers")
    numbers = []
    for name in PHONE_VARS:
      value = self.env.get(name)
      if not value:
        continue
      numbers.append(value)
      if _PHONE_RE.match(value):
        self._passed(f"{name} format valid")
      else:
        self._failed(f"{name} invalid format")

    if len(numbers) != len(set(numbers)):
      self._warning("Duplicate phone numbers detected")

  def validate_agent_configuration(self):
    logging.info("Validating agent configuration")
    config = self._load_json("agents.json")
    if config is None:
      return

    agents = {agent.get("id"): agent for agent in config.get("agents", [])}
    for agent_id in REQUIRED_AGENTS:
      agent = agents.get(agent_id)
      if agent is None:
        self._failed(f"Agent {agent_id} not found")
        continue
      self._passed(f"Agent {agent_id} configured")
      if not agent.get("system_prompt"):
        self._warning(f"{agent_id} missing system prompt")
      if not agent.get("tools"):
        self._warning(f"{agent_id} has no tools")

  def validate_tool_endpoints(self):
    """Checks that every critical tool resolves to a configured endpoint."""
    logging.info("Validating tool endpoints")
    config = self._load_json("tools.json")
    if config is None:
      return

    tools = {tool.get("name"): tool for tool in config.get("tools", [])}
    for tool_name in CRITICAL_TOOLS:
      tool = tools.get(tool_name)
      if tool is None:
        self._failed(f"Tool {tool_name} not defined")
        continue
      url = tool.get("endpoint", {}).get("url", "")
      placeholder = _ENDPOINT_VAR_RE.search(url)
      if placeholder and not self.env.get(placeholder.group(1)):
        self._failed(f"Tool {tool_name} endpoint missing")
      else:
        self._passed(f"Tool {tool_name} configured")

  def validate_business_hours(self):
    logging.info("Validating business hours")
    for name in BUSINESS_HOURS_VARS:
      if self.env.get(name):
        self._passed(f"{name} configured")
      else:
        self._warning(f"{name} not configured")

  def validate_compliance(self):
    logging.info("Validating compliance settings")
    config = self._load_json("dealer-config.json")
    if config is None:
      return

    privacy = config.get("privacy", {})
    if privacy.get("recording_notice"):
      self._passed("Recording notice configured")
    else:
      self._failed("Recording notice missing")

    retention_days = self.env.get("DATA_RETENTION_DAYS") or privacy.get(
        "data_retention_days"
    )
    logging.info("  Data retention: %s days", retention_days)

    if self.env.get("ZERO_RETENTION_MODE") == "true":
      self._warning("Zero retention mode enabled")

    compliance = config.get("compliance")
    if compliance:
      for script in COMPLIANCE_SCRIPTS:
        if compliance.get(script):
          self._passed(f"{script} configured")
        else:
          self._failed(f"{script} missing")

  def validate_integrations(self):
    logging.info("Validating integrations")
    if self.env.get("CRM_TYPE") and self.env.get("ADF_INBOX_EMAIL"):
      self._passed("CRM integration configured")
    else:
      self._failed("CRM integration incomplete")

    if self.env.get("SCHEDULER"):
      self._passed("Service scheduler configured")
    else:
      self._warning("Service scheduler not configured")

    if self.env.get("PAYMENTS_PROVIDER"):
      self._passed("Payment provider configured")
    else:
      self._warning("Payment provider not configured")


def write_report(results: dict[str, list[str]], report_dir: Path) -> Path:
  """Saves the validation results as JSON and returns the report path."""
  report_dir = Path(report_dir)
  report_dir.mkdir(parents=True, exist_ok=True)
  stamp = datetime.datetime.now().strftime("%Y%m%d%H%M%S%f")
  report_path = report_dir / f"validation-{stamp}.json"
  report_path.write_text(json.dumps(results, indent=2), encoding="utf-8")
  return report_path


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
  parser = argparse.ArgumentParser(
      description="Validate dealership voice agent configuration"
  )
  parser.add_argument(
      "--config-dir",
      default="config",
      help="Directory holding agents.json, tools.json and dealer-config.json",
  )
  parser.add_argument(
      "--report-dir",
      default="reports",
      help="Directory the JSON validation report is written to",
  )
  parser.add_argument(
      "--log-level",
      default="INFO",
      help="Logging level (e.g. DEBUG, INFO, WARNING)",
  )
  return parser.parse_args(argv)


def main(
    argv: list[str] | None = None, env: Mapping[str, str] | None = None
) -> int:
  args = parse_args(argv)
  logging.basicConfig(
      level=getattr(logging, args.log_level.upper(), logging.INFO),
      format="%(message)s",
  )

  validator = ConfigValidator(
      os.environ if env is None else env, Path(args.config_dir)
  )
  results = validator.validate()
  report_path = write_report(results, Path(args.report_dir))

  total = len(results["passed"]) + len(results["failed"])
  logging.info(
      "Passed %s/%s, failed %s/%s, warnings %s",
      len(results["passed"]),
      total,
      len(results["failed"]),
      total,
      len(results["warnings"]),
  )
  logging.info("Validation report saved to %s", report_path.resolve())

  if results["failed"]:
    logging.error("Validation failed. Fix the issues above before deploying.")
    return 1
  if results["warnings"]:
    logging.warning("Validation passed with warnings.")
  else:
    logging.info("All validations passed. Ready for deployment.")
  return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
  sys.exit(main())
