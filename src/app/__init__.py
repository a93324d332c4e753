"""App: servidor de webhook e infraestrutura.

Subpastas:
- bootstrap/: composition root (logging, settings -> servidor)
- server/: WebhookServer e máquina de estados do ciclo de vida
- infra/: listener HTTP concreto (uvicorn)
- protocols/: contratos/interfaces
- observability/: correlation_id para logs estruturados

Padrão: app executa; api adapta; fulfillment modela o protocolo; utils apoia.
"""
