# apps/security_svc/security_svc_main.py
from libs.app.bootstrap import create_service_app
from libs.messaging.rabbitmq_topology import declare_security_topology

from libs.containers.security_container import SecurityContainer
from apps.security_svc.config.settings_security import SecurityServiceSettings
from apps.security_svc.rest.security_routes import security_routes_router
from apps.security_svc.tasks.cleanup_task import periodic_cleanup

from apps.security_svc.listeners import (
    create_check_lock_listener_factory,
    create_login_failed_listener_factory,
    create_login_succeeded_listener_factory,
)

app = create_service_app(
    service_name="security-svc",
    settings_class=SecurityServiceSettings,
    container_factory=SecurityContainer.create,
    topology_declarator=declare_security_topology,
    listener_factories=[
        create_check_lock_listener_factory(),
        create_login_failed_listener_factory(),
        create_login_succeeded_listener_factory(),
    ],
    include_rest_routers=[
        {"router": security_routes_router, "tags": ["Security"]},
    ],
    background_tasks=[periodic_cleanup],
)
