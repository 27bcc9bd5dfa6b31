from prometheus_client import Counter, Histogram, generate_latest
from fastapi import Response

# Метрики для HTTP запросов
http_requests_total = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status']
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint']
)

# Метрики операций с юнитами (outcome = success или код ошибки)
enrollment_operations_total = Counter(
    'enrollment_operations_total',
    'Unit operations by outcome',
    ['operation', 'outcome']
)

# Не дождались блокировки юнита при обновлении
unit_update_conflicts_total = Counter(
    'unit_update_conflicts_total',
    'Unit updates that timed out waiting for the unit lock'
)

def metrics_endpoint():
    """Endpoint для Prometheus метрик"""
    return Response(content=generate_latest(), media_type="text/plain")
