"""API — camada de borda HTTP do bridge.

Responsabilidades:
- Receber comandos HTTP (envio, repair) e consultas de status
- Autenticar chamadores via Bearer token
- Validar payloads de entrada
- Delegar para use cases e para o supervisor

Subpastas:
- routes/: endpoints HTTP (bridge, health)

NÃO PODE conter: FSM, regras de reconexão, persistência de credenciais.
"""
