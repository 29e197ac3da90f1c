#!/usr/bin/env python3
"""
Example usage script for KPI Studio

This script drives the workflows programmatically: every pause is answered
with a scripted resume payload, the way a frontend would answer the user's
choices.
"""

import pandas as pd
from kpi_studio.app import KPIStudio
from kpi_studio.config.config import Config, configure_logging


def print_run(run):
    """Print the status of a workflow run"""
    print(f"📊 Run {run.run_id}: {run.status.value}")
    if run.current_step:
        print(f"   Step: {run.current_step}")
    if run.is_suspended():
        print(f"   💬 {run.suspend_payload.get('message')}")
    if run.is_complete():
        print(f"   ✅ Output: {run.output}")


def example_kpi_workflow(studio: KPIStudio):
    """Example 1: Create a KPI by index selection"""
    print("🔧 Example 1: KPI workflow")
    print("=" * 50)

    workflow = studio.get_workflow('kpi_workflow')
    run = workflow.start()
    print_run(run)

    tables = run.suspend_payload['availableTables']
    if not tables:
        print("⚠️  No tables found in the database")
        return
    for table in tables:
        print(f"   [{table['index']}] {table['name']}")

    run = workflow.resume(run.run_id, {'selectedTableIndexes': [0]})
    print_run(run)

    table_name = tables[0]['name']
    columns = run.suspend_payload['availableColumns'][table_name]
    for column in columns:
        print(f"   [{column['index']}] {column['column_name']} ({column['data_type']})")

    run = workflow.resume(run.run_id, {
        'selectedColumnsByTable': {table_name: [column['index'] for column in columns[:2]]},
        'kpiName': f"{table_name.split('.')[-1]}_row_count",
        'kpiDescription': f"Number of rows in {table_name}",
        'useAIGeneration': False,
        'manualSQL': f"SELECT COUNT(*) AS row_count FROM {table_name}",
    })
    print_run(run)

    print(f"💻 SQL: {run.suspend_payload['sqlQuery']}")
    preview = pd.DataFrame(run.suspend_payload['previewResults'])
    print("📈 Preview:")
    print(preview.to_string(index=False) if not preview.empty else "   (no rows)")

    run = workflow.resume(run.run_id, {'confirmed': True})
    print_run(run)


def example_insight_workflow(studio: KPIStudio):
    """Example 2: Generate an insight from the first saved KPI"""
    print("\n🔧 Example 2: Insight workflow")
    print("=" * 50)

    workflow = studio.get_workflow('insight_workflow')
    run = workflow.start()
    print_run(run)

    kpis = run.suspend_payload['availableKPIs']
    if not kpis:
        print("⚠️  No KPIs saved yet")
        return

    kpi_name = kpis[0]['name']
    run = workflow.resume(run.run_id, {
        'kpiName': kpi_name,
        'insightName': f"{kpi_name}_overview",
        'insightDescription': f"What the latest values of {kpi_name} tell us",
    })
    print_run(run)

    print(f"💬 Insight: {run.suspend_payload['insightText']}")
    run = workflow.resume(run.run_id, {'confirmed': True, 'schedule': 'daily', 'execTime': '08:00'})
    print_run(run)


def example_configuration():
    """Example 3: Configuration management"""
    print("\n🔧 Example 3: Configuration Management")
    print("=" * 50)

    print("⚙️  Current Configuration:")
    print(f"  Database URL: {Config.get_database_url()}")
    print(f"  Model: {Config.OPENAI_MODEL}")
    print(f"  Endpoint: {Config.OPENAI_BASE_URL or 'OpenAI'}")
    print(f"  Temperature: {Config.TEMPERATURE}")
    print(f"  Preview limit: {Config.PREVIEW_LIMIT}")
    print(f"  Memory window: {Config.MEMORY_LAST_MESSAGES} messages")

    try:
        Config.validate()
        print("✅ Configuration validation passed")
    except ValueError as e:
        print(f"⚠️  Configuration validation failed: {e}")


def main():
    """Run all examples"""
    print("🚀 KPI Studio - Example Usage")
    print("=" * 60)
    configure_logging()

    example_configuration()

    studio = KPIStudio()
    try:
        for name, example_func in [("KPI workflow", example_kpi_workflow),
                                   ("Insight workflow", example_insight_workflow)]:
            try:
                example_func(studio)
            except Exception as e:
                print(f"❌ Example '{name}' failed: {e}")
            print("\n" + "-" * 60)
    finally:
        studio.close()

    print("\n🎉 All examples completed!")
    print("\n💡 To talk to the agents:")
    print("   kpi-studio kpi        # KPI agent")
    print("   kpi-studio insight    # Insight agent")
    print("   kpi-studio sql        # SQL query agent")


if __name__ == "__main__":
    main()
