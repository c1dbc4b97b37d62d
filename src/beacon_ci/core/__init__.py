# src/beacon_ci/core/__init__.py
"""
Core do Beacon CI.

Este pacote reúne a lógica de decisão do orquestrador, independente de
plataforma de CI, de UI e de qualquer ferramenta concreta de build:

    - config       → resolução de configuração e settings de runtime
    - trigger      → avaliação de eventos (fail-closed)
    - pipeline     → Job, JobResult, PipelineRun e RunContext
    - engine       → execução isolada de jobs e agregação do grafo
    - publish      → máquina de estados de publicação da imagem
    - notification → alerta condicionado ao branch protegido
    - traceability → Manifest e Event Log da execução

Princípios fundamentais:
    - O status de uma run é função pura dos resultados dos jobs
    - Nenhum retry automático em nenhuma camada
    - Segredos nunca são logados nem persistidos
"""
