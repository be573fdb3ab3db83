"""GUI-agnostic core: section model, editing service and XML codec."""
