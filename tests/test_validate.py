"""Tests for the pre-deployment configuration validator."""

import json

from dealer_voice import validate

COMPLETE_ENV = {
    "DEALER_NAME": "Dealer Logic Arizona",
    "DEALER_ADDRESS": "1 Auto Way, Phoenix AZ",
    "DEALER_PHONE": "6025550000",
    "DEALER_WEBSITE": "https://dealer.example.com",
    "MAIN_NUMBER": "6025550000",
    "SALES_NUMBER": "6025550101",
    "SERVICE_NUMBER": "6025550102",
    "PARTS_NUMBER": "6025550103",
    "SIP_PROVIDER": "twilio",
    "SIP_INGRESS_HOST": "sip.example.com",
    "SIP_EGRESS_HOST": "sip-out.example.com",
    "VOICE_ID_EN": "rachel",
    "CRM_TYPE": "vinsolutions",
    "ADF_INBOX_EMAIL": "leads@dealer.example.com",
    "TOOLS_BASE_URL": "https://voice.example.com",
    "HOURS_SALES": "9-8",
    "HOURS_SERVICE": "7-6",
    "HOURS_PARTS": "8-5",
    "SCHEDULER": "xtime",
    "PAYMENTS_PROVIDER": "stripe",
}


def _write_configs(config_dir, tools=None, compliance=True):
  config_dir.mkdir(exist_ok=True)
  agents = {
      "agents": [
          {"id": agent_id, "system_prompt": "Be helpful.", "tools": ["x"]}
          for agent_id in validate.REQUIRED_AGENTS
      ]
  }
  if tools is None:
    tools = [
        {"name": name, "endpoint": {"url": "{{TOOLS_BASE_URL}}/" + name}}
        for name in validate.CRITICAL_TOOLS
    ]
  dealer_config = {"privacy": {"recording_notice": "This call is recorded."}}
  if compliance:
    dealer_config["compliance"] = {
        script: "configured" for script in validate.COMPLIANCE_SCRIPTS
    }
  (config_dir / "agents.json").write_text(json.dumps(agents))
  (config_dir / "tools.json").write_text(json.dumps({"tools": tools}))
  (config_dir / "dealer-config.json").write_text(json.dumps(dealer_config))


class TestConfigValidator:

  def test_complete_configuration_passes(self, tmp_path):
    _write_configs(tmp_path)

    results = validate.ConfigValidator(COMPLETE_ENV, tmp_path).validate()

    assert results["failed"] == []
    assert results["warnings"] == []
    assert "Tool createLead configured" in results["passed"]

  def test_missing_environment_variables(self, tmp_path):
    env = dict(COMPLETE_ENV)
    del env["SIP_PROVIDER"]
    validator = validate.ConfigValidator(env, tmp_path)

    validator.validate_environment_variables()

    assert validator.results["failed"] == ["Missing: SIP_PROVIDER"]

  def test_phone_numbers(self, tmp_path):
    env = dict(COMPLETE_ENV, SALES_NUMBER="602-555-0101")
    env["PARTS_NUMBER"] = env["SERVICE_NUMBER"]
    validator = validate.ConfigValidator(env, tmp_path)

    validator.validate_phone_numbers()

    assert validator.results["failed"] == ["SALES_NUMBER invalid format"]
    assert validator.results["warnings"] == [
        "Duplicate phone numbers detected"
    ]

  def test_missing_agent_and_weak_agent(self, tmp_path):
    _write_configs(tmp_path)
    (tmp_path / "agents.json").write_text(
        json.dumps({"agents": [{"id": "agent.reception"}]})
    )
    validator = validate.ConfigValidator(COMPLETE_ENV, tmp_path)

    validator.validate_agent_configuration()

    assert "Agent agent.sales not found" in validator.results["failed"]
    assert validator.results["warnings"] == [
        "agent.reception missing system prompt",
        "agent.reception has no tools",
    ]

  def test_tool_endpoint_placeholder_must_resolve(self, tmp_path):
    _write_configs(
        tmp_path,
        tools=[
            {"name": "createLead", "endpoint": {"url": "{{CRM_HOOK_URL}}"}},
            {"name": "transfer", "endpoint": {"url": "https://x.example.com"}},
        ],
    )
    validator = validate.ConfigValidator(COMPLETE_ENV, tmp_path)

    validator.validate_tool_endpoints()

    failed = validator.results["failed"]
    assert "Tool createLead endpoint missing" in failed
    assert "Tool getInventory not defined" in failed
    assert "Tool transfer configured" in validator.results["passed"]

  def test_missing_and_invalid_files(self, tmp_path):
    (tmp_path / "tools.json").write_text("{not json")
    validator = validate.ConfigValidator(COMPLETE_ENV, tmp_path)

    validator.validate_agent_configuration()
    validator.validate_tool_endpoints()

    [missing, invalid] = validator.results["failed"]
    assert missing.startswith("agents.json not found")
    assert invalid.startswith("tools.json is not valid JSON")

  def test_compliance_scripts(self, tmp_path):
    _write_configs(tmp_path)
    (tmp_path / "dealer-config.json").write_text(
        json.dumps({"privacy": {}, "compliance": {"dnc_phrase": "stop"}})
    )
    env = dict(COMPLETE_ENV, ZERO_RETENTION_MODE="true")
    validator = validate.ConfigValidator(env, tmp_path)

    validator.validate_compliance()

    assert validator.results["failed"] == [
        "Recording notice missing",
        "call_opening missing",
        "sms_opt_in_script missing",
        "payment_rule missing",
    ]
    assert validator.results["warnings"] == ["Zero retention mode enabled"]

  def test_optional_integrations_warn(self, tmp_path):
    env = {"CRM_TYPE": "vinsolutions"}
    validator = validate.ConfigValidator(env, tmp_path)

    validator.validate_integrations()
    validator.validate_business_hours()

    assert validator.results["failed"] == ["CRM integration incomplete"]
    assert "Service scheduler not configured" in validator.results["warnings"]
    assert "HOURS_SALES not configured" in validator.results["warnings"]


class TestMain:

  def test_exit_code_and_report(self, tmp_path):
    config_dir = tmp_path / "config"
    report_dir = tmp_path / "reports"
    _write_configs(config_dir)
    argv = ["--config-dir", str(config_dir), "--report-dir", str(report_dir)]

    assert validate.main(argv, env=COMPLETE_ENV) == 0
    assert validate.main(argv, env={}) == 1

    reports = sorted(report_dir.glob("validation-*.json"))
    assert len(reports) == 2
    results = [json.loads(path.read_text()) for path in reports]
    assert {bool(r["failed"]) for r in results} == {True, False}

  def test_warnings_do_not_fail(self, tmp_path):
    config_dir = tmp_path / "config"
    _write_configs(config_dir)
    env = dict(COMPLETE_ENV)
    del env["SCHEDULER"]

    exit_code = validate.main(
        [
            "--config-dir",
            str(config_dir),
            "--report-dir",
            str(tmp_path / "reports"),
        ],
        env=env,
    )

    assert exit_code == 0

  def test_parse_args_defaults(self):
    args = validate.parse_args([])
    assert args.config_dir == "config"
    assert args.report_dir == "reports"
    assert args.log_level == "INFO"
