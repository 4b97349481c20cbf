"""Facility resource endpoints, shortages and bed availability."""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view
from rest_framework.response import Response

from core.services.resources import ResourceService


@api_view(['GET', 'POST'])
def resources(request):
    service = ResourceService.for_request(request)
    if request.method == 'POST':
        return Response(service.create(request.data), status=status.HTTP_201_CREATED)
    return Response(service.list(request.query_params).as_dict())


@api_view(['GET', 'PATCH', 'PUT', 'DELETE'])
def resource_detail(request, pk: int):
    service = ResourceService.for_request(request)
    if request.method == 'GET':
        return Response(service.get(pk))
    if request.method == 'DELETE':
        service.delete(pk)
        return Response(status=status.HTTP_204_NO_CONTENT)
    return Response(service.update(pk, request.data))


@api_view(['GET'])
def critical_shortages(request):
    return Response(ResourceService.for_request(request).critical_shortages(request.query_params))


@api_view(['GET'])
def bed_availability(request):
    return Response(ResourceService.for_request(request).bed_availability(request.query_params))
