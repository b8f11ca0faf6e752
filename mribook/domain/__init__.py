"""Domain packages - one per resource, each with repository, service, schemas and router"""
