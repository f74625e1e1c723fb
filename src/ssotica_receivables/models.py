from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Installment(BaseModel):
    """
    One receivable installment ("parcela") as scraped from the portal listing.

    Every field is display text; nothing is parsed to a number or a date here.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    description: str = ""
    sale_id: str = Field(default="", alias="saleId")
    amount: str = ""
    due_date: str = Field(default="", alias="dueDate")
    status: str = ""


class CurrentInstallmentResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    customer: str
    current_installment: Optional[Installment] = Field(default=None, alias="currentInstallment")


class WriteOffResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    customer: str
    sale_id: str = Field(alias="saleId")
    due_date: str = Field(alias="dueDate")
