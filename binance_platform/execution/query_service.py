"""Read-only account queries. Pass-through to the gateway; errors propagate."""

from typing import List

from binance_platform.execution.gateway import ExchangeGateway
from binance_platform.execution.intent import AccountBalance, OpenPosition


class QueryService:

    def __init__(self, gateway: ExchangeGateway):
        self.gateway = gateway

    def get_balance(self) -> AccountBalance:
        return self.gateway.get_account_info()

    def get_positions(self) -> List[OpenPosition]:
        return self.gateway.get_open_positions()
