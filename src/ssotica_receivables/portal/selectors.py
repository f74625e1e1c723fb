from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PortalSelectors:
    """
    SSOtica is a web portal we do not control; selectors may change over time.
    Keep all UI selectors/text hooks here for easy maintenance.
    """

    # Login
    email_input: str = "#email"
    password_input: str = "#senha"
    login_submit: str = "button.button.bgBlue"

    # Contas a receber (search)
    search_input: str = 'input[name="searchTerm_Parcelamento"]'
    search_type_select: str = 'select[name="searchTermSelect_Parcelamento"]'
    search_submit: str = 'button:has-text("Buscar")'

    # Result list
    result_item: str = "li.item-conta-a-receber"
    item_description: str = ".descricao-conta-a-receber"
    item_amount: str = ".valor-conta-a-receber"
    item_status: str = ".status-conta-a-receber"

    # Settle ("baixa") controls inside one result item, probed in this order.
    settle_controls: tuple[str, ...] = (
        'button:has-text("Baixar")',
        'a:has-text("Baixar")',
        'button:has-text("Pagar")',
        'a:has-text("Pagar")',
        'button:has-text("Quitar")',
        'a:has-text("Quitar")',
        '[aria-label*="Baixar"]',
        '[title*="Baixar"]',
    )
