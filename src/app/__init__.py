"""App — coração do bridge: ciclo de vida, casos de uso e infraestrutura.

Subpastas:
- bootstrap/: composition root (factories, inicialização, wiring)
- lifecycle/: supervisor de reconexão, classificador e status
- use_cases/: casos de uso (inputs/outputs, sem IO direto)
- infra/: implementações concretas de IO (credenciais, QR)
- protocols/: contratos/interfaces
- observability/: logs estruturados, correlation_id, métricas

Padrão: app executa; api adapta; fsm governa; utils apoia.
"""
