"""View controllers: one per screen, each owning one server snapshot."""

from controlgastos.controllers.base import ActionState, ViewController
from controlgastos.controllers.dashboard import DashboardController
from controlgastos.controllers.transaction_form import TransactionFormController
from controlgastos.controllers.transactions import TransactionsController
from controlgastos.controllers.couple import CoupleController
from controlgastos.controllers.account import (
    REGISTRATION_SUCCESS_MESSAGE,
    RegistrationController,
    SignInController,
)

__all__ = [
    # Base
    "ActionState",
    "ViewController",
    # Views
    "DashboardController",
    "TransactionFormController",
    "TransactionsController",
    "CoupleController",
    # Account
    "REGISTRATION_SUCCESS_MESSAGE",
    "RegistrationController",
    "SignInController",
]
