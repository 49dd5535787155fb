# Copyright (c) 2025 OptimNow - Jean Latiere. All Rights Reserved.
# Licensed under the Proprietary Software License.
# See LICENSE file in the project root for full license information.

"""
Per-provider resource type taxonomy.

Each provider has an ordered list of categories (used for UI grouping only)
and a flattened set of every valid resource type identifier. Identifier
formats differ per provider and are never parsed:

- AWS:   ``service:resource-type`` (e.g. ``ec2:instance``)
- GCP:   ``service.googleapis.com/ResourceType``
- Azure: ``Microsoft.Provider/resourceType``

No identifier appears in more than one provider's set.
"""

import logging
from functools import lru_cache
from types import MappingProxyType

from ..models import CloudProvider, ResourceCategory

logger = logging.getLogger(__name__)

# Azure storage accounts restrict tag names to 128 characters
AZURE_STORAGE_ACCOUNT_PREFIX = "Microsoft.Storage/storageAccounts"


def _category(name: str, description: str, *resources: str) -> ResourceCategory:
    return ResourceCategory(name=name, description=description, resources=frozenset(resources))


# Organized by typical spend impact for FinOps prioritization
_AWS_CATEGORIES = (
    _category(
        "Compute",
        "Instances, containers and functions - typically 40-60% of spend",
        "ec2:instance",
        "ec2:volume",
        "ec2:snapshot",
        "lambda:function",
        "ecs:cluster",
        "ecs:service",
        "ecs:task-definition",
        "eks:cluster",
        "eks:nodegroup",
    ),
    _category(
        "Storage",
        "Object and file storage - typically 10-20% of spend",
        "s3:bucket",
        "elasticfilesystem:file-system",
        "fsx:file-system",
    ),
    _category(
        "Database",
        "Managed databases and caches - typically 15-25% of spend",
        "rds:db",
        "rds:cluster",
        "dynamodb:table",
        "elasticache:cluster",
        "redshift:cluster",
        "opensearch:domain",
    ),
    _category(
        "AI/ML",
        "Model hosting and training",
        "sagemaker:endpoint",
        "sagemaker:notebook-instance",
        "bedrock:provisioned-model-throughput",
        "bedrock:agent",
        "bedrock:knowledge-base",
    ),
    _category(
        "Networking",
        "Load balancers and gateways",
        "elasticloadbalancing:loadbalancer",
        "elasticloadbalancing:targetgroup",
        "ec2:natgateway",
    ),
    _category(
        "Analytics & Streaming",
        "Data pipelines and streams",
        "kinesis:stream",
        "glue:job",
    ),
    _category(
        "Security",
        "Secrets and encryption keys",
        "secretsmanager:secret",
        "kms:key",
    ),
)

_GCP_CATEGORIES = (
    _category(
        "Compute",
        "Virtual machines, disks and images",
        "compute.googleapis.com/Instance",
        "compute.googleapis.com/Disk",
        "compute.googleapis.com/Snapshot",
        "compute.googleapis.com/Image",
        "compute.googleapis.com/InstanceTemplate",
    ),
    _category(
        "Containers",
        "GKE and Cloud Run workloads",
        "container.googleapis.com/Cluster",
        "container.googleapis.com/NodePool",
        "run.googleapis.com/Service",
        "run.googleapis.com/Job",
    ),
    _category(
        "Serverless",
        "Functions and App Engine",
        "cloudfunctions.googleapis.com/CloudFunction",
        "appengine.googleapis.com/Application",
    ),
    _category(
        "Storage",
        "Object and file storage",
        "storage.googleapis.com/Bucket",
        "file.googleapis.com/Instance",
    ),
    _category(
        "Databases",
        "Managed relational, NoSQL and cache services",
        "sqladmin.googleapis.com/Instance",
        "spanner.googleapis.com/Instance",
        "bigtableadmin.googleapis.com/Instance",
        "redis.googleapis.com/Instance",
        "alloydb.googleapis.com/Cluster",
        "firestore.googleapis.com/Database",
    ),
    _category(
        "Analytics",
        "Warehousing, processing and messaging",
        "bigquery.googleapis.com/Dataset",
        "bigquery.googleapis.com/Table",
        "dataproc.googleapis.com/Cluster",
        "dataflow.googleapis.com/Job",
        "pubsub.googleapis.com/Topic",
        "pubsub.googleapis.com/Subscription",
        "composer.googleapis.com/Environment",
    ),
    _category(
        "AI/ML",
        "Vertex AI and notebooks",
        "aiplatform.googleapis.com/Endpoint",
        "aiplatform.googleapis.com/Model",
        "aiplatform.googleapis.com/Dataset",
        "notebooks.googleapis.com/Instance",
    ),
    _category(
        "Networking",
        "Load balancing and addressing",
        "compute.googleapis.com/ForwardingRule",
        "compute.googleapis.com/Address",
        "compute.googleapis.com/VpnGateway",
    ),
    _category(
        "Security",
        "Secrets and encryption keys",
        "secretmanager.googleapis.com/Secret",
        "cloudkms.googleapis.com/CryptoKey",
    ),
)

_AZURE_CATEGORIES = (
    _category(
        "Compute",
        "Virtual machines, scale sets and disks",
        "Microsoft.Compute/virtualMachines",
        "Microsoft.Compute/virtualMachineScaleSets",
        "Microsoft.Compute/disks",
        "Microsoft.Compute/snapshots",
        "Microsoft.Compute/images",
        "Microsoft.Compute/availabilitySets",
        "Microsoft.Compute/galleries",
        "Microsoft.Compute/hostGroups",
    ),
    _category(
        "Containers",
        "AKS, registries and container apps",
        "Microsoft.ContainerService/managedClusters",
        "Microsoft.ContainerRegistry/registries",
        "Microsoft.ContainerInstance/containerGroups",
        "Microsoft.App/containerApps",
        "Microsoft.App/managedEnvironments",
        "Microsoft.RedHatOpenShift/openShiftClusters",
    ),
    _category(
        "App Services",
        "Web apps, plans and API management",
        "Microsoft.Web/sites",
        "Microsoft.Web/serverFarms",
        "Microsoft.Web/staticSites",
        "Microsoft.Web/hostingEnvironments",
        "Microsoft.Logic/workflows",
        "Microsoft.ApiManagement/service",
    ),
    _category(
        "Storage",
        "Storage accounts and file services",
        "Microsoft.Storage/storageAccounts",
        "Microsoft.NetApp/netAppAccounts",
        "Microsoft.NetApp/netAppAccounts/capacityPools",
        "Microsoft.StorageSync/storageSyncServices",
        "Microsoft.DataLakeStore/accounts",
    ),
    _category(
        "Databases",
        "SQL, open-source engines, Cosmos DB and caches",
        "Microsoft.Sql/servers",
        "Microsoft.Sql/servers/databases",
        "Microsoft.Sql/managedInstances",
        "Microsoft.DBforPostgreSQL/flexibleServers",
        "Microsoft.DBforMySQL/flexibleServers",
        "Microsoft.DBforMariaDB/servers",
        "Microsoft.DocumentDB/databaseAccounts",
        "Microsoft.Cache/redis",
        "Microsoft.Kusto/clusters",
    ),
    _category(
        "Analytics",
        "Data platforms and streaming",
        "Microsoft.Synapse/workspaces",
        "Microsoft.Databricks/workspaces",
        "Microsoft.DataFactory/factories",
        "Microsoft.HDInsight/clusters",
        "Microsoft.StreamAnalytics/streamingjobs",
        "Microsoft.EventHub/namespaces",
        "Microsoft.PowerBIDedicated/capacities",
    ),
    _category(
        "AI/ML",
        "Machine learning and cognitive services",
        "Microsoft.MachineLearningServices/workspaces",
        "Microsoft.MachineLearningServices/workspaces/onlineEndpoints",
        "Microsoft.CognitiveServices/accounts",
        "Microsoft.Search/searchServices",
        "Microsoft.BotService/botServices",
    ),
    _category(
        "Networking",
        "Virtual networks, gateways and delivery",
        "Microsoft.Network/virtualNetworks",
        "Microsoft.Network/networkInterfaces",
        "Microsoft.Network/networkSecurityGroups",
        "Microsoft.Network/publicIPAddresses",
        "Microsoft.Network/loadBalancers",
        "Microsoft.Network/applicationGateways",
        "Microsoft.Network/natGateways",
        "Microsoft.Network/virtualNetworkGateways",
        "Microsoft.Network/azureFirewalls",
        "Microsoft.Network/frontDoors",
        "Microsoft.Network/privateEndpoints",
        "Microsoft.Network/dnsZones",
        "Microsoft.Cdn/profiles",
    ),
    _category(
        "Integration",
        "Messaging and eventing",
        "Microsoft.ServiceBus/namespaces",
        "Microsoft.EventGrid/topics",
        "Microsoft.EventGrid/domains",
        "Microsoft.Relay/namespaces",
        "Microsoft.NotificationHubs/namespaces",
    ),
    _category(
        "Security & Identity",
        "Key vaults and managed identities",
        "Microsoft.KeyVault/vaults",
        "Microsoft.KeyVault/managedHSMs",
        "Microsoft.ManagedIdentity/userAssignedIdentities",
    ),
    _category(
        "Monitoring & Management",
        "Observability, automation and backup",
        "Microsoft.Insights/components",
        "Microsoft.Insights/actionGroups",
        "Microsoft.OperationalInsights/workspaces",
        "Microsoft.Automation/automationAccounts",
        "Microsoft.RecoveryServices/vaults",
        "Microsoft.Dashboard/grafana",
    ),
    _category(
        "IoT",
        "Device connectivity",
        "Microsoft.Devices/IotHubs",
        "Microsoft.IoTCentral/iotApps",
        "Microsoft.DigitalTwins/digitalTwinsInstances",
    ),
    _category(
        "Virtual Desktop",
        "Azure Virtual Desktop",
        "Microsoft.DesktopVirtualization/hostPools",
        "Microsoft.DesktopVirtualization/workspaces",
    ),
)

RESOURCE_CATEGORIES = MappingProxyType(
    {
        CloudProvider.AWS: _AWS_CATEGORIES,
        CloudProvider.GCP: _GCP_CATEGORIES,
        CloudProvider.AZURE: _AZURE_CATEGORIES,
    }
)


def get_resource_categories(provider: CloudProvider | str) -> tuple[ResourceCategory, ...]:
    """
    Get the ordered resource categories for a provider.

    Args:
        provider: Cloud provider (enum or its string value)

    Returns:
        Ordered tuple of ResourceCategory

    Raises:
        ValueError: If the provider is not supported
    """
    return RESOURCE_CATEGORIES[CloudProvider.parse(provider)]


@lru_cache(maxsize=None)
def _flattened(provider: CloudProvider) -> frozenset[str]:
    resources: set[str] = set()
    for category in RESOURCE_CATEGORIES[provider]:
        resources.update(category.resources)
    logger.debug(f"Built {provider.value} taxonomy with {len(resources)} resource types")
    return frozenset(resources)


def get_resource_types(provider: CloudProvider | str) -> frozenset[str]:
    """
    Get every valid resource type identifier for a provider.

    Args:
        provider: Cloud provider (enum or its string value)

    Returns:
        Deduplicated union of all category resource types
    """
    return _flattened(CloudProvider.parse(provider))


def is_valid_resource_type(provider: CloudProvider | str, resource_type: str) -> bool:
    """Check whether a resource type belongs to the provider's taxonomy."""
    return resource_type in get_resource_types(provider)


def find_provider_for_resource_type(resource_type: str) -> CloudProvider | None:
    """Return the provider whose taxonomy contains the resource type, if any."""
    for provider in CloudProvider:
        if resource_type in _flattened(provider):
            return provider
    return None
