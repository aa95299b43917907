"""Normalized proposal / policy payload.

Keys mirror the OCR pipeline's Portuguese JSON (serialized by alias), so
every consumer of the hosted tables reads the same field names. Missing
fields are filled with ``"Não informado"``.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator

NOT_INFORMED = "Não informado"
NO = "Não"
YES = "Sim"

DocumentType = Literal["proposta", "apolice", "endosso", "cancelado"]


class _Section(BaseModel):
    """Lenient section: non-dict input becomes empty, nulls fall back to defaults."""

    model_config = {
        "populate_by_name": True,
        "coerce_numbers_to_str": True,
        "extra": "ignore",
    }

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return {}
        return {
            k: (YES if v else NO) if isinstance(v, bool) else v
            for k, v in data.items()
            if v is not None
        }


class InstallmentPlan(_Section):
    quantity: str = Field(default="1", alias="quantidade")
    installment_value: str = Field(default=NOT_INFORMED, alias="valor_parcela")


class Values(_Section):
    iof: str = Field(default=NOT_INFORMED, alias="iof")
    total_price: str = Field(default=NOT_INFORMED, alias="preco_total")
    net_price: str = Field(default=NOT_INFORMED, alias="preco_liquido")
    payment_method: str = Field(default=NOT_INFORMED, alias="forma_pagamento")
    installments: InstallmentPlan = Field(default_factory=InstallmentPlan, alias="parcelamento")

    @model_validator(mode="before")
    @classmethod
    def _installment_value_defaults_to_total(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return {}
        plan = data.get("parcelamento")
        total = data.get("preco_total")
        if total is not None and (not isinstance(plan, dict) or plan.get("valor_parcela") is None):
            plan = dict(plan) if isinstance(plan, dict) else {}
            plan["valor_parcela"] = total
            data = {**data, "parcelamento": plan}
        return data


class Vehicle(_Section):
    plate: str = Field(default=NOT_INFORMED, alias="placa")
    make_model: str = Field(default=NOT_INFORMED, alias="marca_modelo")
    model_year: str = Field(default=NOT_INFORMED, alias="ano_modelo")
    manufacture_year: str = Field(default=NOT_INFORMED, alias="ano_fabricacao")
    chassis: str = Field(default=NOT_INFORMED, alias="chassi")
    fuel: str = Field(default=NOT_INFORMED, alias="combustivel")
    usage: str = Field(default=NOT_INFORMED, alias="finalidade_uso")
    zero_km: str = Field(default=NO, alias="zero_km")
    armored: str = Field(default=NO, alias="blindado")
    gas_kit: str = Field(default=NO, alias="kit_gas")
    transmission: str = Field(default=NOT_INFORMED, alias="cambio")
    passenger_count: str = Field(default=NOT_INFORMED, alias="quantidade_passageiros")
    anti_theft_devices: str = Field(default=NOT_INFORMED, alias="dispositivos_antifurto")
    category: str = Field(default=NOT_INFORMED, alias="categoria")
    fipe_code: str = Field(default=NOT_INFORMED, alias="codigo_fipe")
    overnight_zip: str = Field(default=NOT_INFORMED, alias="cep_pernoite")


class Broker(_Section):
    name: str = Field(default=NOT_INFORMED, alias="nome")
    susep: str = Field(default=NOT_INFORMED, alias="susep")
    phone: str = Field(default=NOT_INFORMED, alias="telefone")
    email: str = Field(default=NOT_INFORMED, alias="email")


class ProposalInfo(_Section):
    number: str = Field(default=NOT_INFORMED, alias="numero")
    policy_number: str = Field(default=NOT_INFORMED, alias="apolice")
    insurer: str = Field(default=NOT_INFORMED, alias="cia_seguradora")
    insurance_type: str = Field(default=NOT_INFORMED, alias="tipo_seguro")
    line_of_business: str = Field(default=NOT_INFORMED, alias="ramo")
    ci_code: str = Field(default=NOT_INFORMED, alias="codigo_ci")
    renewal: str = Field(default=NOT_INFORMED, alias="renovacao")
    bonus_class: str = Field(default=NOT_INFORMED, alias="classe_bonus")
    start_date: str = Field(default=NOT_INFORMED, alias="vigencia_inicio")
    end_date: str = Field(default=NOT_INFORMED, alias="vigencia_fim")
    susep_process: str = Field(default=NOT_INFORMED, alias="processo_susep")
    endorsement: str | None = Field(default=None, alias="endosso")


class Address(_Section):
    zip_code: str = Field(default=NOT_INFORMED, alias="cep")
    street: str = Field(default=NOT_INFORMED, alias="logradouro")
    number: str = Field(default=NOT_INFORMED, alias="numero")
    complement: str = Field(default=NOT_INFORMED, alias="complemento")
    district: str = Field(default=NOT_INFORMED, alias="bairro")
    city: str = Field(default=NOT_INFORMED, alias="cidade")
    state: str = Field(default=NOT_INFORMED, alias="estado")


class Insured(_Section):
    name: str = Field(default=NOT_INFORMED, alias="nome")
    cpf: str = Field(default=NOT_INFORMED, alias="cpf")
    email: str = Field(default=NOT_INFORMED, alias="email")
    phone: str = Field(default=NOT_INFORMED, alias="telefone")
    occupation: str = Field(default=NOT_INFORMED, alias="profissao")
    residence: str = Field(default=NOT_INFORMED, alias="reside_em")
    birth_date: str = Field(default=NOT_INFORMED, alias="nascimento")
    marital_status: str = Field(default=NOT_INFORMED, alias="estado_civil")
    monthly_income: str = Field(default=NOT_INFORMED, alias="renda_mensal")
    has_garage: str = Field(default=NOT_INFORMED, alias="possui_garagem")
    address: Address = Field(default_factory=Address, alias="endereco")


class RentalCar(_Section):
    size: str = Field(default=NOT_INFORMED, alias="porte")
    days: str = Field(default=NOT_INFORMED, alias="quantidade_dias")


class Assistance(_Section):
    rental_car: RentalCar = Field(default_factory=RentalCar, alias="carro_reserva")
    roadside_24h: str = Field(default=NOT_INFORMED, alias="assistencia_24h")
    extra_protections: list[Any] = Field(default_factory=list, alias="protecoes_adicionais")

    @model_validator(mode="before")
    @classmethod
    def _lists_only(cls, data: Any) -> Any:
        if isinstance(data, dict) and not isinstance(data.get("protecoes_adicionais"), list):
            data = {k: v for k, v in data.items() if k != "protecoes_adicionais"}
        return data


class NormalizedProposal(BaseModel):
    id: str = ""
    status: str = ""
    document_type: DocumentType = Field(default="proposta", alias="tipo_documento")
    values: Values = Field(default_factory=Values, alias="valores")
    vehicle: Vehicle = Field(default_factory=Vehicle, alias="veiculo")
    broker: Broker = Field(default_factory=Broker, alias="corretor")
    proposal: ProposalInfo = Field(default_factory=ProposalInfo, alias="proposta")
    insured: Insured = Field(default_factory=Insured, alias="segurado")
    coverages: list[Any] = Field(default_factory=list, alias="coberturas")
    assistance: Assistance = Field(default_factory=Assistance, alias="assistencias")
    clauses: list[Any] = Field(default_factory=list, alias="clausulas")
    created_at: Any = Field(default=None, alias="criado_em")

    model_config = {"populate_by_name": True, "coerce_numbers_to_str": True}
