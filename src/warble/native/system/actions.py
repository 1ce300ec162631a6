"""Built-in ``system`` module: introspection of the running module set."""

from warble.context import get_dispatcher, module_stack_depth, module_stack_path
from warble.http.request import Request
from warble.modules.actions import ActionTable

actions = ActionTable()


@actions.get("/modules")
def list_modules() -> dict:
    return {
        "modules": [
            {
                "name": module.name,
                "namespace": module.namespace,
                "domain": module.domain,
                "version": module.version,
                "dependencies": list(module.dependencies),
            }
            for module in get_dispatcher().installed_modules()
        ]
    }


@actions.get("/modules/{namespace}")
def show_module(namespace: str):
    module = get_dispatcher().get_module_by_namespace(namespace)
    if module is None:
        return {"error": {"message": f"module {namespace} not installed", "code": 404}}, 404
    return {
        "name": module.name,
        "namespace": module.namespace,
        "domain": module.domain,
        "dependencies": list(module.dependencies),
        "actions": [
            {"path": action.path, "methods": sorted(action.methods), "name": action.name}
            for action in module.actions
        ],
    }


@actions.get("/stack")
def stack(request: Request) -> dict:
    return {
        "path": module_stack_path(),
        "depth": module_stack_depth(),
        "dispatchingId": request.get_context("dispatchingId"),
    }
