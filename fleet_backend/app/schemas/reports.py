"""
Reporting schemas.

Response shapes of the /estatisticas and /relatorios dashboards.
"""

from pydantic import BaseModel
from typing import List, Optional
from datetime import date, datetime


# --- /estatisticas/geral ---

class GeneralSummary(BaseModel):
    custo_total_combustivel: float
    custo_total_manutencao: float
    custo_total_operacional: float
    km_total: int
    custo_por_km: float
    total_viagens: int
    viagens_finalizadas: int
    total_abastecimentos: int
    total_manutencoes: int


class MonthlyCost(BaseModel):
    mes: str  # YYYY-MM
    mes_nome: str
    combustivel: float
    manutencao: float
    km: int
    custo_total: float


class GeneralStatistics(BaseModel):
    periodo_meses: int
    resumo: GeneralSummary
    por_mes: List[MonthlyCost]


# --- /relatorios/overview ---

class FleetOverview(BaseModel):
    total_veiculos: int
    veiculos_ativos: int
    veiculos_em_viagem: int
    veiculos_manutencao: int


class DriversOverview(BaseModel):
    total_motoristas: int
    motoristas_ativos: int
    motoristas_em_viagem: int


class TripsOverview(BaseModel):
    total_viagens: int
    viagens_em_andamento: int
    viagens_finalizadas: int
    viagens_canceladas: int
    km_total_percorrido: int


class CitiesOverview(BaseModel):
    total_cidades: int


class CostsOverview(BaseModel):
    custo_total_combustivel: float
    custo_total_manutencao: float
    custo_operacional_total: float


class OverviewReport(BaseModel):
    periodo_meses: int
    frota: FleetOverview
    motoristas: DriversOverview
    viagens: TripsOverview
    cidades: CitiesOverview
    custos: CostsOverview


# --- /relatorios/frota-completo ---

class VehicleFullStats(BaseModel):
    id_veiculo: int
    placa: str
    modelo: str
    marca: str
    ano: int
    tipo: Optional[str]
    km_atual: int
    status: str
    total_viagens: int
    total_abastecimentos: int
    total_litros: float
    km_rodados: float
    custo_combustivel: float
    custo_manutencao: float
    custo_total: float
    custo_por_km: float
    consumo_medio_km_l: float
    km_por_abastecimento: float


class FleetReport(BaseModel):
    periodo_meses: int
    veiculos: List[VehicleFullStats]


# --- /relatorios/motoristas-completo ---

class DriverFullStats(BaseModel):
    cpf: str
    nome: str
    cnh: str
    cat_cnh: str
    validade_cnh: Optional[date]
    status: str
    total_viagens: int
    viagens_finalizadas: int
    viagens_canceladas: int
    km_rodados: float
    taxa_conclusao: float
    veiculos_diferentes: int
    rotas_diferentes: int
    cnh_vencida: bool
    dias_para_vencer_cnh: int


class DriversReport(BaseModel):
    periodo_meses: int
    motoristas: List[DriverFullStats]


# --- /relatorios/eficiencia-combustivel ---

class FuelEfficiencyStats(BaseModel):
    id_veiculo: int
    placa: str
    modelo: str
    total_abastecimentos: int
    total_litros: float
    custo_total: float
    km_rodados: float
    consumo_medio_km_l: float
    litros_por_100km: float
    classificacao: str
    custo_por_km: float


class FuelEfficiencyReport(BaseModel):
    periodo_meses: int
    veiculos: List[FuelEfficiencyStats]


# --- /relatorios/manutencao-critica ---

class MaintenanceStats(BaseModel):
    id_veiculo: int
    placa: str
    modelo: str
    total_manutencoes: int
    manutencoes_preventivas: int
    manutencoes_corretivas: int
    manutencoes_concluidas: int
    custo_total: float


class MaintenanceReport(BaseModel):
    periodo_meses: int
    veiculos: List[MaintenanceStats]


# --- /relatorios/rotas-analise ---

class RouteStats(BaseModel):
    rota: str
    origem: str
    origem_uf: str
    destino: str
    destino_uf: str
    total_viagens: int
    km_total: int


class RoutesReport(BaseModel):
    periodo_meses: int
    rotas: List[RouteStats]


# --- /relatorios/custo-beneficio ---

class CostBenefitStats(BaseModel):
    id_veiculo: int
    placa: str
    modelo: str
    custo_operacional: float
    km_rodados: float
    custo_por_km: float
    total_viagens: int
    taxa_utilizacao: float
    eficiencia_operacional: str


class CostBenefitReport(BaseModel):
    periodo_meses: int
    veiculos: List[CostBenefitStats]


# --- /relatorios/timeline ---

class TimelineEvent(BaseModel):
    tipo: str  # viagem, abastecimento, manutencao
    data: datetime
    descricao: str
    veiculo_placa: str
    km: Optional[int] = None
    valor: Optional[float] = None


class TimelineReport(BaseModel):
    periodo_meses: int
    total_eventos: int
    eventos: List[TimelineEvent]


# --- /relatorios/comparativo-mensal ---

class MonthlyComparison(BaseModel):
    mes: str
    mes_nome: str
    total_viagens: int
    km_rodados: float
    custo_combustivel: float
    custo_manutencao: float
    custo_total: float
    tendencia_viagens: str
    tendencia_custos: str


class MonthlyComparisonReport(BaseModel):
    periodo_meses: int
    comparativo: List[MonthlyComparison]
