#!/usr/bin/env python3
"""
Utility Functions Module
Helpers shared by the HTTP layer
"""

import json
import logging
import traceback
from datetime import datetime
from decimal import Decimal
from typing import Dict, Any, Optional, Tuple

logger = logging.getLogger(__name__)


def log_exception(func_name: str, exception: Exception) -> None:
    """Log exception with traceback"""
    logger.error(f"Exception in {func_name}: {exception}")
    logger.error(f"Traceback: {traceback.format_exc()}")


def create_response_dict(status: str, message: str = '', data: Any = None,
                         timestamp: Optional[str] = None) -> Dict[str, Any]:
    """Create standardized API response dictionary"""
    response = {
        'status': status,
        'timestamp': timestamp or datetime.now().isoformat()
    }

    if message:
        response['message'] = message

    if data is not None:
        response['data'] = data

    return response


def parse_json_safely(payload: str) -> Tuple[Optional[Dict[str, Any]], Optional[str]]:
    """Safely parse JSON payload and return data and error message"""
    try:
        return json.loads(payload), None
    except json.JSONDecodeError as e:
        error_msg = f"Invalid JSON: {str(e)}"
        logger.error(f"{error_msg}. Payload: {payload[:200]}...")
        return None, error_msg


def decimal_to_str(value: Optional[Decimal]) -> Optional[str]:
    """Decimals go over JSON as strings to keep exchange precision"""
    return None if value is None else str(value)
