# lambda_handler.py
# AWS Lambda / Netlify handlers for the reCAPTCHA form relay

from mangum import Mangum
import logging
import os
import json

from form_relay import __version__
from form_relay.api import app, get_settings
from form_relay.handler import JSON_CONTENT_TYPE, cors_headers

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")
logger = logging.getLogger(__name__)

# Wrap FastAPI app with Mangum for Lambda compatibility
relay_handler = Mangum(app, lifespan="off")

# Netlify edge headers carrying the connecting client's address
NETLIFY_CLIENT_IP_HEADERS = ["x-nf-client-connection-ip", "client-ip"]


def as_api_gateway_event(event):
    """
    Fill in the API Gateway REST fields Mangum needs

    Netlify Functions events carry httpMethod, path, headers and body but
    no resource or requestContext. The source IP is taken from Netlify's
    edge headers, never from X-Forwarded-For.
    """
    if "resource" in event and "requestContext" in event:
        return event

    event = dict(event)
    headers = {k.lower(): v for k, v in (event.get("headers") or {}).items()}
    source_ip = next((headers[h] for h in NETLIFY_CLIENT_IP_HEADERS if headers.get(h)), None)
    path = event.get("path") or "/"

    event["headers"] = event.get("headers") or {}
    event.setdefault("resource", path)
    event.setdefault("body", None)
    event.setdefault("isBase64Encoded", False)
    event["multiValueHeaders"] = event.get("multiValueHeaders") or {
        k: [v] for k, v in event["headers"].items()
    }
    event.setdefault("requestContext", {
        "resourcePath": path,
        "httpMethod": event.get("httpMethod"),
        "path": path,
        "stage": "netlify",
        "identity": {"sourceIp": source_ip}
    })
    return event

# Lambda handlers
def verify(event, context):
    """
    Lambda handler for the relay
    Accepts API Gateway REST and Netlify Functions events on any route
    """
    try:
        return relay_handler(as_api_gateway_event(event), context)
    except Exception as e:
        logger.exception("Unhandled error in relay handler")
        headers = cors_headers(get_settings())
        headers["Content-Type"] = JSON_CONTENT_TYPE
        return {
            "statusCode": 500,
            "body": json.dumps({
                "error": "Internal Server Error",
                "message": str(e)
            }),
            "headers": headers
        }

# Health check handler
def health_check(event, context):
    """
    Simple health check endpoint
    """
    return {
        "statusCode": 200,
        "body": json.dumps({
            "status": "healthy",
            "service": "reCAPTCHA Form Relay",
            "version": __version__,
            "environment": os.getenv("AWS_LAMBDA_FUNCTION_NAME", "local")
        }),
        "headers": {
            "Content-Type": "application/json",
            "Access-Control-Allow-Origin": get_settings().allowed_origin
        }
    }
