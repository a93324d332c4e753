"""API: camada de borda HTTP.

Responsabilidades:
- Criar a aplicação ASGI e registrar rotas de webhook
- Traduzir eventos HTTP em chamadas do adaptador de fulfillment
- Mapear falhas do domínio para status HTTP

NÃO PODE conter: ciclo de vida do servidor, sinais, listener.
"""
