"""Webhook tools exposed to the voice agent.

Each entry tells the voice platform which endpoint of this service to call
when the agent decides to use the tool, and which parameters to collect from
the caller first.
"""

from typing import Any


def get_tools_configuration(webhook_url: str) -> list[dict[str, Any]]:
  """Returns the tool definitions registered with the voice platform.

  Args:
      webhook_url: Public base URL of this service.

  Returns:
      One definition per tool, in the voice platform's webhook-tool format.
  """
  base_url = webhook_url.rstrip("/")
  return [
      {
          "name": "inventory_search",
          "description": "Search available vehicle inventory",
          "type": "webhook",
          "webhook_url": f"{base_url}/tools/inventory",
          "parameters": {
              "make": {"type": "string", "description": "Vehicle manufacturer"},
              "model": {"type": "string", "description": "Vehicle model"},
              "year": {"type": "number", "description": "Model year"},
              "price_max": {"type": "number", "description": "Maximum price"},
              "type": {
                  "type": "string",
                  "description": "Vehicle type (SUV, Sedan, Truck, etc.)",
              },
          },
      },
      {
          "name": "schedule_service",
          "description": "Schedule a service appointment",
          "type": "webhook",
          "webhook_url": f"{base_url}/tools/service",
          "parameters": {
              "service_type": {
                  "type": "string",
                  "description": "Type of service needed",
              },
              "preferred_date": {
                  "type": "string",
                  "description": "Preferred appointment date",
              },
              "vehicle_info": {
                  "type": "string",
                  "description": "Vehicle year, make, and model",
              },
              "customer_name": {
                  "type": "string",
                  "description": "Customer name",
              },
              "phone": {
                  "type": "string",
                  "description": "Contact phone number",
              },
          },
      },
      {
          "name": "check_trade_value",
          "description": "Estimate trade-in value for a vehicle",
          "type": "webhook",
          "webhook_url": f"{base_url}/tools/trade",
          "parameters": {
              "year": {"type": "number", "description": "Vehicle year"},
              "make": {"type": "string", "description": "Vehicle manufacturer"},
              "model": {"type": "string", "description": "Vehicle model"},
              "mileage": {"type": "number", "description": "Current mileage"},
              "condition": {
                  "type": "string",
                  "description": "Vehicle condition (excellent, good, fair)",
              },
          },
      },
      {
          "name": "transfer_to_human",
          "description": "Transfer call to human representative",
          "type": "webhook",
          "webhook_url": f"{base_url}/tools/transfer",
          "parameters": {
              "department": {
                  "type": "string",
                  "description": "Department to transfer to",
              },
              "reason": {
                  "type": "string",
                  "description": "Reason for transfer",
              },
              "customer_info": {
                  "type": "object",
                  "description": "Customer information collected",
              },
          },
      },
  ]
