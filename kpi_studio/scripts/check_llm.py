#!/usr/bin/env python3
"""
Check that the configured model answers with the configured credentials
"""

import sys
from langchain_core.messages import HumanMessage, SystemMessage
from kpi_studio.config.config import Config, configure_logging
from kpi_studio.tools.llm_manager import LLMManager


def check_llm(llm_manager=None) -> bool:
    """Send one short message to the chat model"""
    print("=== Testing LLM connection ===\n")
    print(f"Model: {Config.OPENAI_MODEL}")
    if Config.OPENAI_BASE_URL:
        print(f"Endpoint: {Config.OPENAI_BASE_URL}")

    try:
        llm_manager = llm_manager or LLMManager()
        model = llm_manager.get_chat_model()
        reply = model.invoke([
            SystemMessage(content="You are a helpful assistant. Answer questions briefly and clearly."),
            HumanMessage(content="Hello! Can you tell me what 2+2 is?")
        ])
    except Exception as e:
        print(f"❌ Error: {e}")
        print("\nTroubleshooting:")
        print("1. Check your .env file exists")
        print("2. Verify OPENAI_API_KEY (or OPENROUTER_API_KEY) is set")
        print("3. Check OPENAI_MODEL and OPENAI_BASE_URL match your provider")
        print("4. Ensure you have internet connection")
        return False

    print(f"Agent response: {reply.content}")
    print("\n✅ LLM is working correctly!")
    print("\nNext steps:")
    print("1. Set up PostgreSQL database")
    print("2. Run: kpi-studio-init-db")
    print("3. Run: kpi-studio")
    return True


def main():
    configure_logging(log_file="")
    if not check_llm():
        sys.exit(1)


if __name__ == "__main__":
    main()
